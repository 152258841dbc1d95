"""Prometheus metrics for completion calls, retrieval and generation runs."""

from prometheus_client import Counter, Histogram

# Completion capability
completion_calls_total = Counter(
    "tender_completion_calls_total",
    "Total completion calls",
    ["stage", "outcome"],
)

completion_retries_total = Counter(
    "tender_completion_retries_total",
    "Total completion retries after rate limiting",
)

# Analysis cache
summary_cache_hits_total = Counter(
    "tender_summary_cache_hits_total",
    "Total analysis summary cache hits",
    ["role"],
)

# Embedding / index
embedding_failures_total = Counter(
    "tender_embedding_failures_total",
    "Total chunks skipped because embedding failed",
    ["reason"],
)

indexed_chunks_total = Counter(
    "tender_indexed_chunks_total",
    "Total chunks written to the vector store",
)

# Generation runs
generation_duration_ms = Histogram(
    "tender_generation_duration_ms",
    "End-to-end generation latency in milliseconds",
    ["status"],
    buckets=[1000, 5000, 10000, 30000, 60000, 120000, 300000],
)


class PrometheusPipelineMetrics:
    """Prometheus-based pipeline metrics implementation."""

    def record_call(self, stage: str, outcome: str) -> None:
        """Increment completion call counter."""
        completion_calls_total.labels(stage=stage, outcome=outcome).inc()

    def inc_retry(self) -> None:
        """Increment retry counter."""
        completion_retries_total.inc()

    def inc_cache_hit(self, role: str) -> None:
        """Increment summary cache hit counter."""
        summary_cache_hits_total.labels(role=role).inc()

    def inc_embedding_failure(self, reason: str) -> None:
        """Increment embedding failure counter."""
        embedding_failures_total.labels(reason=reason).inc()

    def inc_indexed(self, count: int) -> None:
        """Increment indexed chunk counter."""
        indexed_chunks_total.inc(count)

    def record_generation(self, status: str, duration_ms: float) -> None:
        """Record generation run latency."""
        generation_duration_ms.labels(status=status).observe(duration_ms)


metrics = PrometheusPipelineMetrics()
