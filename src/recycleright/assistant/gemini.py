"""
Gemini chat + vision client.

This module wraps the `google-genai` SDK for the two things the app asks of the model:
- `chat`: a conversation about recycling; the model may call `getNearestBin`
- `recognise_image`: identify items in a photo and say whether they are recyclable

Without `GEMINI_API_KEY` the assistant runs in demo mode and never touches the network,
so the frontend stays usable during local development.
"""

from __future__ import annotations

import base64
import json
import logging
import random
import re
from typing import Any, Sequence

import httpx
from google import genai
from google.genai import errors, types

from recycleright.bins.nearest import BinLocator
from recycleright.config.settings import Settings
from recycleright.domain.models import ChatMessage

from .tools import ToolArgumentError, UnknownToolError, assistant_tools, dispatch_tool_call

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,")


def _decode_image(content: str) -> tuple[bytes, str | None]:
    """Decode base64 image content, accepting an optional `data:<mime>;base64,` prefix."""
    mime: str | None = None
    m = _DATA_URL.match(content)
    if m:
        mime = m.group("mime")
        content = content[m.end():]
    return base64.b64decode(content), mime


def to_part(msg: ChatMessage) -> types.Part:
    """Convert one chat message into a Gemini content part."""
    if msg.type == "text":
        return types.Part.from_text(text=msg.content)
    data, data_url_mime = _decode_image(msg.content)
    mime_type = msg.mime_type or data_url_mime
    if not mime_type:
        raise ValueError("No mime type found for image!")
    return types.Part.from_bytes(data=data, mime_type=mime_type)


def to_content(msg: ChatMessage) -> types.Content:
    return types.Content(role=msg.role, parts=[to_part(msg)])


def parse_model_json(text: str) -> Any:
    """Parse JSON from a model reply, unwrapping a ```json fenced block if present."""
    if "```" in text:
        m = _FENCED_JSON.search(text)
        if m and m.group(1):
            return json.loads(m.group(1).strip())
    return json.loads(text)


class GeminiAssistant:
    """Recycling assistant backed by Gemini, with the nearest-bin tool wired in."""

    def __init__(self, settings: Settings, locator: BinLocator, client: Any | None = None):
        self._settings = settings
        self._locator = locator
        cfg = settings.assistant
        if client is None and cfg.api_key:
            client = genai.Client(
                api_key=cfg.api_key,
                http_options=types.HttpOptions(timeout=int(settings.app.http_timeout_seconds * 1000)),
            )
        self._client = client
        if self._client is None:
            logger.warning(
                "GEMINI_API_KEY is not set; running in DEMO MODE with mock responses. "
                "Set GEMINI_API_KEY (e.g. in a .env file) to use the real API."
            )
        self._config = types.GenerateContentConfig(
            system_instruction=cfg.system_instruction,
            tools=assistant_tools(),
        )

    @property
    def demo_mode(self) -> bool:
        return self._client is None

    def _demo_reply(self, messages: Sequence[ChatMessage]) -> str:
        user_message = ""
        last = messages[-1]
        if last.type == "text" and last.role == "user":
            user_message = last.content
        snippet = user_message[:50] + ("..." if len(user_message) > 50 else "")
        canned = random.choice(self._settings.assistant.replies.demo)
        return f'[DEMO MODE] I received your message: "{snippet}". {canned}'

    def chat(self, messages: Sequence[ChatMessage]) -> str:
        """Send a conversation to Gemini and return the model's next message.

        All but the last message become chat history. If the model calls a tool, the tool
        runs locally and its result is either returned directly (`nearest_bin_reply:
        locations`) or handed back to the model for a natural-language answer.
        """
        replies = self._settings.assistant.replies
        if not messages:
            logger.error("No messages found!")
            return replies.no_messages

        if self.demo_mode:
            logger.info("Using demo mode - returning simulated response")
            return self._demo_reply(messages)

        *history, latest = messages
        logger.info("Calling Gemini with %d messages", len(messages))
        try:
            chat = self._client.chats.create(
                model=self._settings.assistant.model,
                config=self._config,
                history=[to_content(m) for m in history],
            )
            response = chat.send_message([to_part(latest)])
            calls = response.function_calls or []
            if calls:
                return self._handle_function_call(chat, calls[0])
            return response.text or ""
        except (errors.APIError, httpx.HTTPError) as e:
            logger.error("Error communicating with Gemini API: %s", e)
            return replies.provider_error

    def _handle_function_call(self, chat: Any, call: types.FunctionCall) -> str:
        cfg = self._settings.assistant
        try:
            result = dispatch_tool_call(call.name, call.args, self._locator)
        except UnknownToolError as e:
            logger.error("%s", e)
            return cfg.replies.unknown_tool
        except ToolArgumentError as e:
            logger.warning("Rejected tool call %s: %s", call.name, e)
            follow_up = chat.send_message(
                [types.Part.from_function_response(name=call.name, response={"error": str(e)})]
            )
            return follow_up.text or ""

        if cfg.nearest_bin_reply == "locations":
            return json.dumps({"locations": result.payload()})

        follow_up = chat.send_message(
            [types.Part.from_function_response(name=result.name.value, response={"content": result.as_json()})]
        )
        return follow_up.text or ""

    def recognise_image(self, image_base64: str, mime_type: str = "image/jpeg") -> dict[str, Any]:
        """Ask Gemini what the pictured item is and whether it can be recycled in Singapore."""
        if self.demo_mode:
            logger.info("Using demo mode for image recognition")
            return {
                "name": "Demo Item",
                "canBeRecycled": True,
                "note": "This is a demo response because no Gemini API key is configured. Please add a valid API key.",
            }

        logger.info("Recognizing image with Gemini Vision - image length: %d", len(image_base64))
        prompts = self._settings.assistant.prompts
        prompt = prompts.image_recognition.replace("{example}", json.dumps(prompts.image_recognition_example))
        messages = [
            ChatMessage(type="text", role="user", content=prompt),
            ChatMessage(type="image", role="user", content=image_base64, mime_type=mime_type),
        ]
        result = self.chat(messages)
        try:
            parsed = parse_model_json(result)
        except ValueError as e:
            logger.error("Error parsing Gemini response: %s", e)
            parsed = None
        if not isinstance(parsed, dict):
            return {"error": "Failed to parse response from image recognition", "rawResponse": result}
        return parsed
