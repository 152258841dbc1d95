"""Tests for completion and embedding clients.

All tests are deterministic and do not make real network calls.
"""

import base64
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import (
    APIConnectionError,
    AuthenticationError,
    InternalServerError,
    PermissionDeniedError,
    RateLimitError,
)

from backend.tenderwriter.config import Settings
from backend.tenderwriter.errors import (
    AuthenticationFailedError,
    CompletionFailedError,
    EmbeddingFailedError,
    RateLimitedError,
)
from backend.tenderwriter.index.embeddings import (
    DeterministicEmbeddingClient,
    OpenAIEmbeddingClient,
    get_embedding_client,
)
from backend.tenderwriter.llm.client import (
    DeterministicStubClient,
    OpenAICompletionClient,
    get_completion_client,
    map_openai_error,
    parts_text,
    to_openai_content,
)
from backend.tenderwriter.models.documents import FilePart, TextPart

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _status_error(cls, status: int):
    return cls(f"HTTP {status}", response=httpx.Response(status, request=_REQUEST), body=None)


def _response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


def _openai_client(create: AsyncMock) -> OpenAICompletionClient:
    client = OpenAICompletionClient(api_key="sk-test")
    mock_openai_client = AsyncMock()
    mock_openai_client.chat.completions.create = create
    client.client = mock_openai_client
    return client


def test_parts_text_marks_attachments() -> None:
    parts = [
        FilePart(data=b"%PDF", mime_type="application/pdf", filename="scan.pdf"),
        TextPart(text="Summarize this."),
    ]

    assert parts_text(parts) == "[attached application/pdf: scan.pdf]\n\nSummarize this."


def test_to_openai_content_encodes_binaries() -> None:
    parts = [
        TextPart(text="Describe"),
        FilePart(data=b"\x89PNG", mime_type="image/png", filename="logo.png"),
        FilePart(data=b"%PDF", mime_type="application/pdf", filename="scan.pdf"),
    ]

    content = to_openai_content(parts)

    assert content[0] == {"type": "text", "text": "Describe"}
    png = base64.b64encode(b"\x89PNG").decode()
    assert content[1] == {
        "type": "image_url",
        "image_url": {"url": f"data:image/png;base64,{png}"},
    }
    assert content[2]["type"] == "file"
    assert content[2]["file"]["filename"] == "scan.pdf"
    assert content[2]["file"]["file_data"].startswith("data:application/pdf;base64,")


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (_status_error(RateLimitError, 429), RateLimitedError),
        (_status_error(AuthenticationError, 401), AuthenticationFailedError),
        (_status_error(PermissionDeniedError, 403), AuthenticationFailedError),
        (_status_error(InternalServerError, 500), CompletionFailedError),
        (APIConnectionError(request=_REQUEST), CompletionFailedError),
    ],
)
def test_map_openai_error(error: Exception, expected: type) -> None:
    assert isinstance(map_openai_error(error), expected)


@pytest.mark.asyncio
async def test_stub_client_echoes_prompt() -> None:
    client = DeterministicStubClient()

    text = await client.complete([TextPart(text="Hello tender")])
    tokens = [t async for t in client.stream([TextPart(text="Hello tender")])]

    assert text == "Hello tender"
    assert "".join(tokens).strip() == "Hello tender"


@pytest.mark.asyncio
async def test_openai_client_calls_api_and_returns_text() -> None:
    create = AsyncMock(return_value=_response("# Executive Summary"))
    client = _openai_client(create)

    text = await client.complete([TextPart(text="Write it")], system="Be formal")

    assert text == "# Executive Summary"
    messages = create.call_args.kwargs["messages"]
    assert messages[0] == {"role": "system", "content": "Be formal"}
    assert messages[1]["content"] == [{"type": "text", "text": "Write it"}]
    assert create.call_args.kwargs["model"] == "gpt-4o-mini"


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", None])
async def test_openai_client_rejects_empty_response(content: str | None) -> None:
    client = _openai_client(AsyncMock(return_value=_response(content)))

    with pytest.raises(CompletionFailedError):
        await client.complete([TextPart(text="Write it")])


@pytest.mark.asyncio
async def test_openai_client_maps_rate_limit() -> None:
    client = _openai_client(AsyncMock(side_effect=_status_error(RateLimitError, 429)))

    with pytest.raises(RateLimitedError):
        await client.complete([TextPart(text="Write it")])


def test_factories_return_stubs_without_api_key() -> None:
    settings = Settings(_env_file=None, openai_api_key=None, embedding_dimension=32)

    assert isinstance(get_completion_client(settings), DeterministicStubClient)
    embedder = get_embedding_client(settings)
    assert isinstance(embedder, DeterministicEmbeddingClient)
    assert embedder.dimension == 32


def test_factories_return_openai_clients_with_api_key() -> None:
    settings = Settings(_env_file=None, openai_api_key="sk-test", completion_model="gpt-4o")

    completion = get_completion_client(settings)

    assert isinstance(completion, OpenAICompletionClient)
    assert completion.model == "gpt-4o"
    assert isinstance(get_embedding_client(settings), OpenAIEmbeddingClient)


@pytest.mark.asyncio
async def test_openai_embedding_failure_is_wrapped() -> None:
    embedder = OpenAIEmbeddingClient(api_key="sk-test", dimension=8)
    mock_openai_client = AsyncMock()
    mock_openai_client.embeddings.create = AsyncMock(
        side_effect=APIConnectionError(request=_REQUEST)
    )
    embedder.client = mock_openai_client

    with pytest.raises(EmbeddingFailedError):
        await embedder.embed("text")


@pytest.mark.asyncio
async def test_openai_embedding_requests_configured_dimension() -> None:
    embedder = OpenAIEmbeddingClient(api_key="sk-test", dimension=8)
    response = MagicMock()
    response.data = [MagicMock(embedding=[0.1] * 8)]
    mock_openai_client = AsyncMock()
    mock_openai_client.embeddings.create = AsyncMock(return_value=response)
    embedder.client = mock_openai_client

    vector = await embedder.embed("text")

    assert vector == [0.1] * 8
    assert mock_openai_client.embeddings.create.call_args.kwargs["dimensions"] == 8
