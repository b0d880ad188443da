"""
API routes.

Endpoints (paths match what the React frontend calls):
- GET  `/health`: liveness probe.
- POST `/gemini`: chat with the recycling assistant.
- POST `/image/recognise`: identify an item in a photo.
- POST `/bin/nearest`: nearest recycling bins to a position.
- POST `/bin/route`: walking route to a bin.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse, PlainTextResponse

from recycleright.assistant.gemini import GeminiAssistant
from recycleright.bins.nearest import BinLocator, build_locator
from recycleright.config.settings import get_settings
from recycleright.core.geo import GeoPoint
from recycleright.domain.models import (
    ChatReply,
    ChatRequest,
    ImageRecognitionRequest,
    NearestBinQuery,
    NearestBinsResponse,
    RouteRequest,
    WalkingRoute,
)
from recycleright.routing.mapbox import DirectionsUnavailableError, MapboxDirectionsClient

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def _locator() -> BinLocator:
    return build_locator(get_settings())


@lru_cache
def _assistant() -> GeminiAssistant:
    return GeminiAssistant(get_settings(), _locator())


@lru_cache
def _directions() -> MapboxDirectionsClient:
    return MapboxDirectionsClient(get_settings())


@router.get("/health", response_class=PlainTextResponse)
def get_health() -> str:
    logger.info("ALIVE")
    return "ALIVE"


@router.post("/gemini", response_model=ChatReply)
def post_gemini(request: ChatRequest) -> ChatReply:
    """Forward the chat to Gemini and return its next message."""
    logger.info("Received %d chat messages", len(request.messages))
    try:
        next_msg = _assistant().chat(request.messages)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}) from e
    return ChatReply(next_msg=next_msg)


@router.post("/image/recognise")
def post_image_recognise(request: ImageRecognitionRequest) -> JSONResponse:
    """Identify the pictured item(s); error bodies keep the `{error, message}` shape the UI reads."""
    if not request.image:
        return JSONResponse(status_code=400, content={"error": "No image provided"})

    logger.info("Received image for recognition: %s", request.image[:10])
    try:
        result = _assistant().recognise_image(request.image, request.mime_type)
    except Exception as e:
        logger.exception("Error in image recognition endpoint")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process image recognition request", "message": str(e)},
        )
    logger.info("Image recognition result received")
    return JSONResponse(content=result)


@router.post("/bin/nearest", response_model=NearestBinsResponse)
def post_nearest_bins(query: NearestBinQuery) -> NearestBinsResponse:
    """Return the K nearest bins; out-of-area positions are answered, only flagged in `meta`."""
    locator = _locator()
    locations = locator.nearest(query.longitude, query.latitude)
    return NearestBinsResponse(
        locations=locations,
        meta={
            "k": locator.k,
            "within_service_area": locator.in_service_area(query.longitude, query.latitude),
        },
    )


@router.post("/bin/route", response_model=WalkingRoute)
def post_bin_route(request: RouteRequest) -> WalkingRoute:
    """Walking route from `start` to `end` via the directions provider."""
    try:
        return _directions().walking_route(
            GeoPoint(lon=request.start.lon, lat=request.start.lat),
            GeoPoint(lon=request.end.lon, lat=request.end.lat),
        )
    except DirectionsUnavailableError as e:
        raise HTTPException(
            status_code=503,
            detail={"code": "DIRECTIONS_UNAVAILABLE", "message": str(e)},
        ) from e
