"""Tests for error classification and user-facing messages."""

import pytest

from backend.tenderwriter.errors import (
    USER_MESSAGES,
    AnalysisFailedError,
    AssemblyFailedError,
    AuthenticationFailedError,
    CompletionFailedError,
    ErrorKind,
    RateLimitedError,
    SectionGenerationFailedError,
    classify_error,
    user_message,
)


class HttpError(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


@pytest.mark.parametrize(
    ("exc", "kind"),
    [
        (RateLimitedError("429"), ErrorKind.RATE_LIMITED),
        (HttpError(429), ErrorKind.RATE_LIMITED),
        (AuthenticationFailedError("401"), ErrorKind.AUTHENTICATION_FAILED),
        (CompletionFailedError("500"), ErrorKind.GENERATION_FAILED),
        (RuntimeError("boom"), ErrorKind.GENERATION_FAILED),
    ],
)
def test_classify_error(exc: Exception, kind: ErrorKind) -> None:
    assert classify_error(exc) == kind


def test_wrapped_causes_are_classified() -> None:
    assert classify_error(AssemblyFailedError(RateLimitedError("429"))) == ErrorKind.RATE_LIMITED
    assert (
        classify_error(AnalysisFailedError("rfp.txt", AuthenticationFailedError("401")))
        == ErrorKind.AUTHENTICATION_FAILED
    )
    assert (
        classify_error(SectionGenerationFailedError("Pricing", CompletionFailedError("x")))
        == ErrorKind.GENERATION_FAILED
    )


def test_every_kind_has_a_message() -> None:
    assert set(USER_MESSAGES) == set(ErrorKind)
    assert "rate limiting" in user_message(ErrorKind.RATE_LIMITED)


def test_section_failure_message_names_section() -> None:
    failure = SectionGenerationFailedError("Pricing", CompletionFailedError("upstream"))

    assert str(failure) == 'Failed to generate content for section "Pricing": upstream'
    assert failure.title == "Pricing"
