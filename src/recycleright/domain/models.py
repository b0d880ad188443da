"""
Domain models (Pydantic).

These types are the contract between the HTTP API, the CLI and the assistant:
- chat/vision inputs (`ChatMessage`, `ChatRequest`, `ImageRecognitionRequest`)
- nearest-bin query and output (`NearestBinQuery`, `NearestBin`)
- walking directions (`RouteRequest`, `WalkingRoute`)

Field aliases keep the camelCase wire format the React frontend already speaks.
"""

from __future__ import annotations

import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator


class ChatMessage(BaseModel):
    """One chat turn: text, or a base64 encoded image with its MIME type."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["text", "image"]
    role: Literal["user", "model"]
    content: str
    mime_type: str | None = Field(default=None, alias="mimeType")

    @model_validator(mode="after")
    def _require_mime_type_for_images(self) -> "ChatMessage":
        if self.type == "image" and not self.mime_type:
            raise ValueError("No mime type found for image!")
        return self


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)


class ChatReply(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    next_msg: str = Field(..., alias="nextMsg")


class ImageRecognitionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image: str | None = None
    mime_type: str = Field(default="image/jpeg", alias="mimeType")


class NearestBinQuery(BaseModel):
    """Current position of the caller. Ranges are deliberately not validated."""

    longitude: float
    latitude: float


class NearestBin(BaseModel):
    """A bin location and its distance in meters; `inf` marks an unfilled slot."""

    longitude: float
    latitude: float
    distance: float

    @field_serializer("distance", when_used="json")
    def _encode_unfilled_slot(self, distance: float) -> float | None:
        # JSON has no infinity.
        return distance if math.isfinite(distance) else None


class NearestBinsResponse(BaseModel):
    locations: list[NearestBin]
    meta: dict[str, Any] = Field(default_factory=dict)


class LonLat(BaseModel):
    lon: float = Field(..., ge=-180, le=180)
    lat: float = Field(..., ge=-90, le=90)


class RouteRequest(BaseModel):
    start: LonLat
    end: LonLat


class WalkingRoute(BaseModel):
    """A walking route as returned by the directions provider (GeoJSON line coordinates)."""

    distance_m: float
    duration_s: float
    coordinates: list[list[float]] = Field(default_factory=list)
