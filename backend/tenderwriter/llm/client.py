"""Completion client with OpenAI integration.

Security: Reads API key from settings only, never hardcoded.
Provides deterministic fallback when no key present for testing.
"""

import base64
import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any, Protocol

from openai import (
    APIStatusError,
    AsyncOpenAI,
    AuthenticationError,
    OpenAIError,
    PermissionDeniedError,
    RateLimitError,
)

from backend.tenderwriter.config import Settings
from backend.tenderwriter.errors import (
    AuthenticationFailedError,
    CompletionError,
    CompletionFailedError,
    RateLimitedError,
)
from backend.tenderwriter.models.documents import FilePart, TextPart

logger = logging.getLogger(__name__)

Parts = Sequence[TextPart | FilePart]


class CompletionClient(Protocol):
    """Protocol for completion client implementations."""

    async def complete(self, parts: Parts, system: str | None = None) -> str:
        """Generate a full completion for the given content parts.

        Args:
            parts: Ordered text and inline file parts forming the user turn
            system: Optional system instruction

        Returns:
            Generated text

        Raises:
            RateLimitedError: Provider returned 429
            AuthenticationFailedError: Provider rejected credentials
            CompletionFailedError: Any other provider failure
        """
        ...

    def stream(self, parts: Parts, system: str | None = None) -> AsyncIterator[str]:
        """Generate a completion as an async stream of text tokens."""
        ...


def parts_text(parts: Parts) -> str:
    """Flatten parts into plain text; file parts become a short marker."""
    out: list[str] = []
    for part in parts:
        if isinstance(part, FilePart):
            out.append(f"[attached {part.mime_type}: {part.filename or 'unnamed'}]")
        else:
            out.append(part.text)
    return "\n\n".join(out)


class DeterministicStubClient:
    """Deterministic stub client for testing (no API key required).

    Echoes the prompt back so downstream output is traceable to its inputs.
    """

    async def complete(self, parts: Parts, system: str | None = None) -> str:
        """Echo the prompt text."""
        return parts_text(parts)

    async def stream(self, parts: Parts, system: str | None = None) -> AsyncIterator[str]:
        """Echo the prompt text word by word."""
        text = parts_text(parts)
        for word in text.split(" "):
            yield word + " "


def to_openai_content(parts: Parts) -> list[dict[str, Any]]:
    """Convert parts into OpenAI chat content items (binary as base64 data URIs)."""
    content: list[dict[str, Any]] = []
    for part in parts:
        if isinstance(part, TextPart):
            content.append({"type": "text", "text": part.text})
            continue
        data_uri = f"data:{part.mime_type};base64,{base64.b64encode(part.data).decode('ascii')}"
        if part.mime_type.startswith("image/"):
            content.append({"type": "image_url", "image_url": {"url": data_uri}})
        else:
            content.append(
                {
                    "type": "file",
                    "file": {"filename": part.filename or "document", "file_data": data_uri},
                }
            )
    return content


def map_openai_error(e: Exception) -> CompletionError:
    """Map an OpenAI SDK exception onto the completion error taxonomy."""
    if isinstance(e, RateLimitError) or (isinstance(e, APIStatusError) and e.status_code == 429):
        return RateLimitedError(str(e))
    if isinstance(e, AuthenticationError | PermissionDeniedError):
        return AuthenticationFailedError(str(e))
    return CompletionFailedError(str(e))


class OpenAICompletionClient:
    """OpenAI-backed completion client."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.4,
        max_tokens: int = 2000,
    ):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key (read from settings)
            model: Model name to use (default: gpt-4o-mini for cost efficiency)
            temperature: Sampling temperature
            max_tokens: Completion token ceiling per call
        """
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def _messages(self, parts: Parts, system: str | None) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": to_openai_content(parts)})
        return messages

    async def complete(self, parts: Parts, system: str | None = None) -> str:
        """Generate a completion using the OpenAI API."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(parts, system),  # type: ignore[arg-type]
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            logger.warning(f"OpenAI API call failed: {type(e).__name__}: {e}")
            raise map_openai_error(e) from e

        text = response.choices[0].message.content or ""
        if not text.strip():
            raise CompletionFailedError("OpenAI returned an empty response")
        return text

    async def stream(self, parts: Parts, system: str | None = None) -> AsyncIterator[str]:
        """Stream completion tokens from the OpenAI API."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=self._messages(parts, system),  # type: ignore[arg-type]
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                stream=True,
            )
            async for event in response:
                if event.choices and event.choices[0].delta.content:
                    yield event.choices[0].delta.content
        except OpenAIError as e:
            logger.warning(f"OpenAI streaming call failed: {type(e).__name__}: {e}")
            raise map_openai_error(e) from e


def get_completion_client(settings: Settings) -> CompletionClient:
    """Factory function to get appropriate completion client based on config.

    Returns:
        OpenAICompletionClient if API key is configured, DeterministicStubClient otherwise
    """
    api_key = settings.openai_api_key

    if api_key and api_key.get_secret_value():
        logger.info(f"Using OpenAI completion client ({settings.completion_model})")
        return OpenAICompletionClient(
            api_key=api_key.get_secret_value(),
            model=settings.completion_model,
            temperature=settings.completion_temperature,
            max_tokens=settings.completion_max_tokens,
        )
    else:
        logger.warning("No OpenAI API key configured, using deterministic stub client")
        return DeterministicStubClient()
