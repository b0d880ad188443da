"""
Function-calling tools exposed to Gemini.

The model sees a schema-described declaration (`getNearestBin`) and may ask us to run it.
Tool names are a closed `Enum`; dispatch goes through one function so an unsupported
name surfaces as `UnknownToolError` instead of a silent miss.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from google.genai import types

from recycleright.bins.nearest import BinLocator
from recycleright.domain.models import NearestBin

logger = logging.getLogger(__name__)

NEAREST_BIN_DESCRIPTION = (
    "Gets the coordinates and distances (in metres) of nearest few recycling bins "
    "(Also known as BlooBin or blue bin) to the current location."
)


class ToolName(str, Enum):
    GET_NEAREST_BIN = "getNearestBin"


class UnknownToolError(LookupError):
    """The model asked for a function we do not declare."""


class ToolArgumentError(ValueError):
    """The model called a tool with missing or non-numeric arguments."""


@dataclass(frozen=True)
class ToolResult:
    name: ToolName
    locations: list[NearestBin]

    def payload(self) -> list[dict[str, Any]]:
        # mode="json" turns the `inf` distance of unfilled slots into null.
        return [loc.model_dump(mode="json") for loc in self.locations]

    def as_json(self) -> str:
        return json.dumps(self.payload())


def nearest_bin_declaration() -> types.FunctionDeclaration:
    """Schema for `getNearestBin(currentLongitude, currentLatitude)`."""
    return types.FunctionDeclaration(
        name=ToolName.GET_NEAREST_BIN.value,
        description=NEAREST_BIN_DESCRIPTION,
        parameters=types.Schema(
            type=types.Type.OBJECT,
            properties={
                "currentLongitude": types.Schema(
                    type=types.Type.NUMBER, description="The longitude of the current position"
                ),
                "currentLatitude": types.Schema(
                    type=types.Type.NUMBER, description="The latitude of the current position"
                ),
            },
            required=["currentLongitude", "currentLatitude"],
        ),
    )


def assistant_tools() -> list[types.Tool]:
    return [types.Tool(function_declarations=[nearest_bin_declaration()])]


def resolve_tool_name(name: str | None) -> ToolName:
    try:
        return ToolName(name)
    except ValueError as e:
        raise UnknownToolError(f"Function {name!r} is not a declared tool") from e


def _number_arg(args: Mapping[str, Any], key: str) -> float:
    value = args.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ToolArgumentError(f"Tool argument '{key}' must be a number, got {value!r}")
    return float(value)


def dispatch_tool_call(name: str | None, args: Mapping[str, Any] | None, locator: BinLocator) -> ToolResult:
    """Run the tool the model asked for and return its result.

    Raises:
        UnknownToolError: If `name` is not a declared tool.
        ToolArgumentError: If required numeric arguments are missing.
    """
    tool = resolve_tool_name(name)
    args = args or {}
    logger.info("Function call: %s with args: %s", tool.value, dict(args))

    if tool is ToolName.GET_NEAREST_BIN:
        lon = _number_arg(args, "currentLongitude")
        lat = _number_arg(args, "currentLatitude")
        return ToolResult(name=tool, locations=locator.nearest(lon, lat))

    raise UnknownToolError(f"No handler for tool {tool.value!r}")
