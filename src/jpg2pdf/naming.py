"""Optional AI service for describing documents and suggesting PDF names.

Talks to an OpenAI-compatible chat endpoint such as LM Studio.  Availability
is checked per run with :func:`probe_ai_service`, which returns an
:class:`AIService` handle or ``None``; callers that have no handle simply
skip the AI features.
"""

from __future__ import annotations

import base64
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_AI_URL = "http://localhost:1234"

_DEFAULT_PROBE_TIMEOUT = 5.0
_DEFAULT_CHAT_TIMEOUT = 120.0
_MAX_IMAGES = 5
_MAX_FILENAME_LENGTH = 50

_SUMMARY_PROMPT = (
    "Analyze these document images and create a brief description "
    "(up to 300 characters). Describe what type of document this is, "
    "whose it is, and which pages are shown. Be specific and informative."
)

_FILENAME_RULES = (
    'Format: "Name Surname document_type pages X-Y.pdf" or similar.\n'
    "Use only Latin letters, numbers, spaces, hyphens, and dots.\n"
    f"Maximum {_MAX_FILENAME_LENGTH} characters (including .pdf extension).\n"
    "Be concise and clear."
)

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*]')
_NON_ASCII = re.compile(r"[^\x00-\x7f]")
# At most one quote at each end.
_SURROUNDING_QUOTE = re.compile(r"^[\"']|[\"']$")


class AIServiceError(Exception):
    """Raised when the AI service fails or returns an unusable response."""


def sanitize_filename(raw: str) -> str:
    """Turn a model reply into a safe ``.pdf`` file name of at most 50 chars."""
    name = " ".join(raw.split())
    name = _SURROUNDING_QUOTE.sub("", name)
    name = _NON_ASCII.sub("", name)
    name = _UNSAFE_CHARS.sub("", name).strip()

    if not name.lower().endswith(".pdf"):
        name += ".pdf"

    if len(name) > _MAX_FILENAME_LENGTH:
        name = name[:-4][: _MAX_FILENAME_LENGTH - 4] + ".pdf"

    return name


def _image_part(data: bytes) -> dict[str, Any]:
    encoded = base64.b64encode(data).decode("ascii")
    return {
        "type": "image_url",
        "image_url": {"url": f"data:image/jpeg;base64,{encoded}"},
    }


@dataclass(frozen=True)
class AIService:
    """Handle to a reachable chat-completions endpoint."""

    client: httpx.AsyncClient
    base_url: str
    timeout: float = _DEFAULT_CHAT_TIMEOUT

    async def chat(self, content: str | list[dict[str, Any]], *, max_tokens: int) -> str:
        """Send a single user message and return the reply text.

        Raises:
            AIServiceError: On HTTP errors or a malformed response.
        """
        payload = {
            "messages": [{"role": "user", "content": content}],
            "max_tokens": max_tokens,
            "temperature": 0.7,
        }
        try:
            response = await self.client.post(
                f"{self.base_url}/v1/chat/completions",
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()["choices"][0]["message"]["content"]
        except httpx.HTTPError as exc:
            raise AIServiceError(f"AI service request failed: {exc}") from exc
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise AIServiceError(f"Unexpected AI service response: {exc}") from exc

    async def summarize(self, images: Sequence[bytes]) -> str:
        """Describe the document shown by the first few *images*."""
        if not images:
            raise ValueError("images must not be empty")

        content: list[dict[str, Any]] = [{"type": "text", "text": _SUMMARY_PROMPT}]
        content.extend(_image_part(data) for data in images[:_MAX_IMAGES])

        summary = await self.chat(content, max_tokens=500)
        return summary.strip()

    async def suggest_filename(
        self,
        *,
        summary: str | None = None,
        images: Sequence[bytes] | None = None,
        page_count: int | None = None,
    ) -> str:
        """Suggest a PDF file name from a *summary* or, failing that, *images*."""
        content: str | list[dict[str, Any]]
        if summary:
            content = (
                "Based on this document description, create a short filename "
                "in English for a PDF file.\n"
                f"{_FILENAME_RULES}\n\n"
                f'Document description: "{summary}"\n'
                f"Page count: {page_count or 'unknown'}\n\n"
                "Return ONLY the filename, no explanations."
            )
        elif images:
            content = [
                {
                    "type": "text",
                    "text": (
                        "Analyze these document images and create a short "
                        "filename in English for a PDF file.\n"
                        f"{_FILENAME_RULES}\n\n"
                        f"Page count: {page_count or len(images)}\n\n"
                        "Return ONLY the filename, no explanations."
                    ),
                }
            ]
            content.extend(_image_part(data) for data in images[:_MAX_IMAGES])
        else:
            raise ValueError("Either summary or images are required")

        filename = sanitize_filename(await self.chat(content, max_tokens=100))
        logger.info("Generated filename: %s", filename)
        return filename


async def probe_ai_service(
    client: httpx.AsyncClient,
    base_url: str = DEFAULT_AI_URL,
    *,
    timeout: float = _DEFAULT_PROBE_TIMEOUT,
) -> AIService | None:
    """Return an :class:`AIService` if *base_url* answers, else ``None``."""
    base_url = base_url.rstrip("/")
    try:
        response = await client.get(f"{base_url}/v1/models", timeout=timeout)
    except httpx.HTTPError as exc:
        logger.info("AI service at %s is not available: %s", base_url, exc)
        return None

    if not response.is_success:
        logger.info(
            "AI service at %s responded with status %d", base_url, response.status_code
        )
        return None

    logger.info("AI service at %s is available", base_url)
    return AIService(client=client, base_url=base_url)
