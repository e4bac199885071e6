# SPDX-License-Identifier: Apache-2.0
"""Campus assistant: relays a chat turn to an OpenAI-compatible completions endpoint."""
from __future__ import annotations

import logging

import httpx

from campusconnect.config import settings
from campusconnect.core.exceptions import ServiceUnavailable, UpstreamError, ValidationError
from campusconnect.schemas import ChatReply, ChatTurn

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10
FALLBACK_REPLY = "Sorry, I could not generate a response."

SYSTEM_PROMPT = """You are CampusConnect Assistant, a helpful AI assistant for a college social networking platform. You help students with:

1. **Platform Features**: Explaining how to use the feed, create posts, connect with peers, and join workshops
2. **Academic Support**: Providing study tips, explaining concepts, and helping with learning strategies
3. **Campus Life**: Answering questions about college life, clubs, and activities
4. **Technical Help**: Troubleshooting issues with the platform

Be friendly, concise, and helpful. Keep responses brief but informative."""


def build_messages(message: str, history: list[ChatTurn]) -> list[dict]:
    """System prompt, the last HISTORY_LIMIT turns, then the new user message."""
    turns = [{"role": t.role, "content": t.content} for t in history[-HISTORY_LIMIT:]]
    return [{"role": "system", "content": SYSTEM_PROMPT}, *turns, {"role": "user", "content": message}]


class ChatbotService:
    def __init__(self, http: httpx.Client) -> None:
        self.http = http

    def reply(self, message: str | None, history: list[ChatTurn] | None = None) -> ChatReply:
        message = (message or "").strip()
        if not message:
            raise ValidationError("Message is required")
        if not settings.chatbot_api_key:
            raise ServiceUnavailable("Assistant is not configured")
        payload = {
            "model": settings.chatbot_model,
            "messages": build_messages(message, history or []),
            "max_tokens": settings.chatbot_max_tokens,
            "temperature": settings.chatbot_temperature,
        }
        try:
            response = self.http.post(
                settings.chatbot_api_url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {settings.chatbot_api_key}",
                    "HTTP-Referer": settings.frontend_url,
                    "X-Title": "CampusConnect",
                },
                timeout=settings.chatbot_timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error("Assistant upstream returned %s: %s", exc.response.status_code, exc.response.text[:500])
            raise UpstreamError()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Assistant request failed: %s", exc)
            raise UpstreamError()
        return ChatReply(message=_first_choice(data) or FALLBACK_REPLY, model=settings.chatbot_model)


def _first_choice(data) -> str | None:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None
    reply = choices[0].get("message")
    if not isinstance(reply, dict):
        return None
    content = reply.get("content")
    return content if isinstance(content, str) and content.strip() else None
