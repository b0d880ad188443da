"""
Recycle Right CLI entrypoint.

Quick local checks without the frontend:
- `recycleright nearest --lon 103.789605 --lat 1.299327`
- `recycleright chat "Where is the nearest recycling bin? I am at (103.789605, 1.299327)"`
- `recycleright recognise photo.jpeg`
"""

from __future__ import annotations

import argparse
import base64
import json
import math
import mimetypes
from pathlib import Path
from typing import Any

from recycleright.assistant.gemini import GeminiAssistant
from recycleright.bins.nearest import BinLocator, build_locator
from recycleright.config.settings import get_settings
from recycleright.core.logging import configure_logging
from recycleright.domain.models import ChatMessage


def _positive_int(value: str) -> int:
    k = int(value)
    if k < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {k}")
    return k


def _locator(args: argparse.Namespace) -> BinLocator:
    settings = get_settings()
    locator = build_locator(settings)
    if getattr(args, "k", None) is not None:
        locator = BinLocator(bins=locator.bins, k=int(args.k))
    return locator


def _cmd_nearest(args: argparse.Namespace) -> int:
    """Handle the `nearest` subcommand."""
    locator = _locator(args)
    results = locator.nearest(float(args.lon), float(args.lat))

    if args.json:
        print(json.dumps([r.model_dump(mode="json") for r in results], indent=2))
        return 0

    if not locator.in_service_area(float(args.lon), float(args.lat)):
        print("Note: position is outside Singapore; distances may be very large.")
    for i, r in enumerate(results, start=1):
        if math.isinf(r.distance):
            print(f"{i:>2}. (no bin found)")
            continue
        print(f"{i:>2}. lon={r.longitude:.6f} lat={r.latitude:.6f}  {r.distance:,.0f} m")
    return 0


def _cmd_chat(args: argparse.Namespace) -> int:
    settings = get_settings()
    assistant = GeminiAssistant(settings, build_locator(settings))
    messages = [ChatMessage(type="text", role="user", content=" ".join(args.message))]
    print(assistant.chat(messages))
    return 0


def _cmd_recognise(args: argparse.Namespace) -> int:
    settings = get_settings()
    path = Path(args.image)
    mime_type = args.mime_type or mimetypes.guess_type(path.name)[0] or "image/jpeg"
    image_b64 = base64.b64encode(path.read_bytes()).decode("ascii")

    assistant = GeminiAssistant(settings, build_locator(settings))
    result = assistant.recognise_image(image_b64, mime_type)
    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the Recycle Right CLI."""
    parser = argparse.ArgumentParser(prog="recycleright")
    sub = parser.add_subparsers(dest="command", required=True)

    near = sub.add_parser("nearest", help="List the nearest recycling bins to a position.")
    near.add_argument("--lon", required=True, type=float, help="Current longitude (e.g. 103.8198)")
    near.add_argument("--lat", required=True, type=float, help="Current latitude (e.g. 1.3521)")
    near.add_argument("--k", type=_positive_int, default=None, help="How many bins to return (default from config)")
    near.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    near.set_defaults(func=_cmd_nearest)

    chat = sub.add_parser("chat", help="Send one message to the recycling assistant.")
    chat.add_argument("message", nargs="+")
    chat.set_defaults(func=_cmd_chat)

    rec = sub.add_parser("recognise", help="Identify an item in an image file and check recyclability.")
    rec.add_argument("image", type=str)
    rec.add_argument("--mime-type", dest="mime_type", type=str, default=None)
    rec.set_defaults(func=_cmd_recognise)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m recycleright.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
