"""
Prometheus metrics for ingestion and export

Metrics live on a private registry so importing this module never touches
the default global one.
"""
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()


# =======================
# INGESTION METRICS
# =======================

rows_read_total = Counter(
    name="ingest_rows_read_total",
    documentation="Data rows decoded from uploaded files",
    labelnames=["format"],  # csv, xlsx
    registry=REGISTRY,
)

rows_skipped_total = Counter(
    name="ingest_rows_skipped_total",
    documentation="Rows dropped before reaching the store (missing identifier)",
    labelnames=["format"],
    registry=REGISTRY,
)

records_upserted_total = Counter(
    name="ingest_records_upserted_total",
    documentation="Upsert outcomes reported by the store",
    labelnames=["outcome"],  # inserted, updated, unchanged, failed
    registry=REGISTRY,
)

chunks_total = Counter(
    name="ingest_chunks_total",
    documentation="Chunks dispatched to the store",
    labelnames=["status"],  # success, error
    registry=REGISTRY,
)

files_rejected_total = Counter(
    name="ingest_files_rejected_total",
    documentation="Ingestion calls that ended in an error",
    labelnames=["error_code"],
    registry=REGISTRY,
)

ingestion_duration_seconds = Histogram(
    name="ingest_duration_seconds",
    documentation="Wall time of a full ingestion call",
    labelnames=["format"],
    buckets=[0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0],
    registry=REGISTRY,
)


# =======================
# EXPORT METRICS
# =======================

records_exported_total = Counter(
    name="export_records_total",
    documentation="Records written to export files",
    labelnames=["format"],  # csv, excel
    registry=REGISTRY,
)

export_duration_seconds = Histogram(
    name="export_duration_seconds",
    documentation="Wall time of an export call",
    labelnames=["format"],
    buckets=[0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0],
    registry=REGISTRY,
)


def record_ingestion(
    file_format: str,
    rows_read: int,
    rows_skipped: int,
    inserted: int,
    updated: int,
    unchanged: int,
    failed: int,
    duration: float,
) -> None:
    """Record the counters of one finished ingestion."""
    rows_read_total.labels(format=file_format).inc(rows_read)
    rows_skipped_total.labels(format=file_format).inc(rows_skipped)
    records_upserted_total.labels(outcome="inserted").inc(inserted)
    records_upserted_total.labels(outcome="updated").inc(updated)
    records_upserted_total.labels(outcome="unchanged").inc(unchanged)
    records_upserted_total.labels(outcome="failed").inc(failed)
    ingestion_duration_seconds.labels(format=file_format).observe(duration)


def record_chunk(success: bool) -> None:
    chunks_total.labels(status="success" if success else "error").inc()


def record_rejection(error_code: str) -> None:
    files_rejected_total.labels(error_code=error_code).inc()


def record_export(file_format: str, record_count: int, duration: float) -> None:
    records_exported_total.labels(format=file_format).inc(record_count)
    export_duration_seconds.labels(format=file_format).observe(duration)


def get_metrics() -> tuple[bytes, str]:
    """
    Render all metrics in the Prometheus exposition format.

    Returns:
        (payload, content type)
    """
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
