"""Logging setup and structured stage logging for generation runs."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at application startup."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


class StructuredStageLogger:
    """Structured logger for generation stage transitions and calls."""

    def log_stage(self, session_id: str, stage: str, message: str | None = None) -> None:
        """Log a stage transition."""
        log_data: dict[str, Any] = {"session_id": session_id, "stage": stage}
        logger.info(
            f"Generation {session_id}: {stage}" + (f" - {message}" if message else ""),
            extra={"structured": log_data},
        )

    def log_call(
        self,
        session_id: str,
        stage: str,
        outcome: str,
        latency_ms: float,
        target: str | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log one completion call with structured data."""
        log_data: dict[str, Any] = {
            "session_id": session_id,
            "stage": stage,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }
        if target:
            log_data["target"] = target
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Completion call: {stage} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
