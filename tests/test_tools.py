import json

import pytest
from google.genai import types

from recycleright.assistant.tools import (
    ToolArgumentError,
    ToolName,
    UnknownToolError,
    assistant_tools,
    dispatch_tool_call,
    nearest_bin_declaration,
)
from recycleright.bins.nearest import BinLocator
from recycleright.core.geo import GeoPoint

LOCATOR = BinLocator(bins=(GeoPoint(lon=103.8198, lat=1.3521), GeoPoint(lon=103.7771, lat=1.2949)))


def test_declaration_requires_both_coordinates():
    decl = nearest_bin_declaration()

    assert decl.name == "getNearestBin"
    assert decl.description
    assert decl.parameters.type == types.Type.OBJECT
    assert set(decl.parameters.properties) == {"currentLongitude", "currentLatitude"}
    assert all(p.type == types.Type.NUMBER for p in decl.parameters.properties.values())
    assert sorted(decl.parameters.required) == ["currentLatitude", "currentLongitude"]


def test_tools_bundle_declares_every_tool_name():
    (tool,) = assistant_tools()

    assert {d.name for d in tool.function_declarations} == {t.value for t in ToolName}


def test_dispatch_runs_nearest_bin_lookup():
    result = dispatch_tool_call("getNearestBin", {"currentLongitude": 103.8198, "currentLatitude": 1.3521}, LOCATOR)

    assert result.name is ToolName.GET_NEAREST_BIN
    assert len(result.locations) == 3
    assert result.locations[0].distance == 0


def test_tool_json_encodes_unfilled_slots_as_null():
    result = dispatch_tool_call("getNearestBin", {"currentLongitude": 103.8, "currentLatitude": 1.3}, LOCATOR)

    payload = json.loads(result.as_json())
    assert [p["distance"] is None for p in payload] == [False, False, True]
    assert payload[2]["longitude"] == 0 and payload[2]["latitude"] == 0


def test_dispatch_accepts_integer_arguments():
    result = dispatch_tool_call("getNearestBin", {"currentLongitude": 104, "currentLatitude": 1}, LOCATOR)

    assert len(result.locations) == 3


def test_unknown_tool_is_rejected():
    with pytest.raises(UnknownToolError):
        dispatch_tool_call("deleteAllBins", {}, LOCATOR)


@pytest.mark.parametrize(
    "args",
    [
        None,
        {"currentLongitude": 103.8},
        {"currentLongitude": "103.8", "currentLatitude": 1.3},
        {"currentLongitude": True, "currentLatitude": 1.3},
    ],
)
def test_bad_arguments_are_rejected(args):
    with pytest.raises(ToolArgumentError):
        dispatch_tool_call("getNearestBin", args, LOCATOR)
