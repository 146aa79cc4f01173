"""Metrics emitted as structured JSON log lines.

Every line carries the event type, the emitting instance and a UTC
timestamp so a log shipper can turn them into counters, gauges and
histograms without a metrics client in the process.
"""

import json
import logging
import os
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

logger = logging.getLogger(__name__)

SERVICE_NAME = "sayarti-messaging"


def log_metric(
    event_type: str,
    value: Optional[float] = None,
    labels: Optional[Dict[str, str]] = None,
    **fields: Any,
) -> None:
    """
    Emit one metric line.

    Args:
        event_type: counter_increment, gauge_set, histogram_record, ...
        value: Numeric value for gauges and histograms
        labels: Low-cardinality dimensions
        **fields: Extra context (ids, error text)
    """
    record: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "instance_id": os.getenv("INSTANCE_ID", "unknown"),
        "service": SERVICE_NAME,
    }
    if value is not None:
        record["value"] = value
    if labels:
        record["labels"] = labels
    record.update(fields)

    logger.info(json.dumps(record, default=str))


def log_counter_increment(
    name: str, labels: Optional[Dict[str, str]] = None, **fields: Any
) -> None:
    log_metric("counter_increment", counter_name=name, labels=labels, **fields)


def log_histogram_record(
    name: str, value: float, labels: Optional[Dict[str, str]] = None, **fields: Any
) -> None:
    log_metric(
        "histogram_record", value=value, labels=labels, histogram_name=name, **fields
    )


def log_gauge_set(
    name: str, value: float, labels: Optional[Dict[str, str]] = None, **fields: Any
) -> None:
    log_metric("gauge_set", value=value, labels=labels, gauge_name=name, **fields)


@contextmanager
def timed(name: str, labels: Optional[Dict[str, str]] = None) -> Iterator[None]:
    """Record the duration of the block as a histogram, only if it completes."""
    started = time.perf_counter()
    yield
    log_histogram_record(name, time.perf_counter() - started, labels=labels)


def log_presence_change(event: str, user_id: int, online_users: int) -> None:
    """A realtime connection was registered or unregistered."""
    log_metric("connection_event", connection_event=event, user_id=user_id)
    log_gauge_set("realtime_online_users", online_users)


def log_side_effect_failure(name: str, message_id: int, error: str) -> None:
    """A best-effort step failed after its message was already committed."""
    log_counter_increment(
        "send_side_effect_failed",
        labels={"side_effect": name},
        message_id=message_id,
        error=error,
    )
