"""Prometheus metrics for survey versioning workflows."""

from prometheus_client import Counter

survey_workflow_total = Counter(
    "survey_workflow_total",
    "Total survey write workflows by outcome",
    ["workflow", "outcome"],
)

survey_compensation_total = Counter(
    "survey_compensation_total",
    "Total compensating deletes after a failed child write",
    ["outcome"],
)

survey_notification_failures_total = Counter(
    "survey_notification_failures_total",
    "Total best-effort notifications that failed",
    ["event_type"],
)


class PrometheusWorkflowMetrics:
    """Prometheus-based workflow metrics implementation."""

    def inc_workflow(self, workflow: str, outcome: str) -> None:
        """Increment workflow outcome counter."""
        survey_workflow_total.labels(workflow=workflow, outcome=outcome).inc()

    def inc_compensation(self, outcome: str) -> None:
        """Increment compensation counter."""
        survey_compensation_total.labels(outcome=outcome).inc()

    def inc_notification_failure(self, event_type: str) -> None:
        """Increment notification failure counter."""
        survey_notification_failures_total.labels(event_type=event_type).inc()
