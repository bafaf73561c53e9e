"""
Attribute publisher.

Walks a record's field table and writes one attribute per field under a base
path. Order of writes for one publish:
1) <base>/Timestamp
2) one write per text or structured field, in table order
3) <base>/Errors, the rendered error log

Failures are appended to the error log and logged, and the walk goes on.
A failed Errors write can only be logged, the log was already rendered.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Sequence

from inventory_agent.core.encoding import encode_compressed
from inventory_agent.core.errors import EncodingError, TransportError
from inventory_agent.core.snapshot import SNAPSHOT_FIELDS, InventorySnapshot
from inventory_agent.core.transport import AttributeTransport
from inventory_agent.core.types import AttributeField, ErrorLog, FieldKind

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """RFC 3339 in UTC with second precision, e.g. 2024-05-01T12:00:00Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _encode(field: AttributeField, value: Any) -> bytes:
    if field.kind is FieldKind.text:
        return str(value).encode("utf-8")
    return encode_compressed(value)


def publish_record(
    record: Any,
    fields: Sequence[AttributeField],
    base_path: str,
    transport: AttributeTransport,
    errors: ErrorLog,
    clock: Clock = utc_now,
) -> List[str]:
    """
    Publish every text and structured field of record.

    Returns the failures raised during this call. All but a failed Errors
    write are also appended to errors.
    """
    logger.info("Writing instance inventory.")
    failures: List[str] = []

    def record_failure(what: str, exc: Exception) -> None:
        logger.error("%s error: %s", what, exc)
        failures.append(str(exc))
        errors.append(str(exc))

    try:
        transport.write(f"{base_path}/Timestamp", format_timestamp(clock()).encode("utf-8"))
    except TransportError as e:
        record_failure("write Timestamp", e)

    for field in fields:
        if field.kind not in (FieldKind.text, FieldKind.structured):
            continue

        path = f"{base_path}/{field.name}"
        value = field.accessor(record)
        logger.debug("write %s: %r", path, value)

        try:
            content = _encode(field, value)
        except EncodingError as e:
            record_failure(f"encode {field.name}", EncodingError(f"{field.name}: {e}"))
            continue

        try:
            transport.write(path, content)
        except TransportError as e:
            record_failure(f"write {field.name}", e)

    try:
        transport.write(f"{base_path}/Errors", errors.render().encode("utf-8"))
    except TransportError as e:
        logger.error("write Errors error: %s", e)
        failures.append(str(e))

    return failures


def publish(
    snapshot: InventorySnapshot,
    base_path: str,
    transport: AttributeTransport,
    clock: Clock = utc_now,
) -> List[str]:
    """Publish an inventory snapshot, merging failures into snapshot.errors."""
    return publish_record(snapshot, SNAPSHOT_FIELDS, base_path, transport, snapshot.errors, clock)
