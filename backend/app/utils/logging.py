"""Structured logging for survey write workflows."""

import logging
from typing import Any
from uuid import UUID

logger = logging.getLogger(__name__)

_SUCCESS_OUTCOMES = ("success", "skipped")


class StructuredWorkflowLogger:
    """Structured logger for versioning workflow steps."""

    def log_step(
        self,
        workflow: str,
        step: str,
        outcome: str,
        survey_id: UUID | None = None,
        version: float | None = None,
        state: str | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log one workflow step with structured data."""
        log_data: dict[str, Any] = {
            "workflow": workflow,
            "step": step,
            "outcome": outcome,
        }

        if survey_id is not None:
            log_data["survey_id"] = str(survey_id)
        if version is not None:
            log_data["version"] = version
        if state is not None:
            log_data["state"] = state
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Survey workflow: {workflow}.{step} - {outcome}"

        if outcome in _SUCCESS_OUTCOMES:
            logger.info(log_msg, extra={"structured": log_data})
        elif outcome == "orphaned":
            logger.error(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
