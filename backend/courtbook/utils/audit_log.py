from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Literal, Optional

from .request_id import get_request_id

AuditAction = Literal[
    "booking.created",
    "booking.cancelled",
]
AuditInitiator = Literal["requester", "system", "venue"]

_audit_logger = logging.getLogger("audit")
_audit_logger.setLevel(logging.INFO)
if not _audit_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    _audit_logger.addHandler(handler)
_audit_logger.propagate = False


def _to_json_value(value: Any) -> Any:
    if value is None:
        return None
    if hasattr(value, "value"):
        return str(value.value)
    if isinstance(value, (date, Decimal)):
        return str(value)
    return value


def emit_audit_log(
    *,
    action: AuditAction,
    initiator: AuditInitiator,
    booking_id: int,
    venue_id: Optional[int],
    requester_id: Optional[str],
    booking_date: Optional[date],
    start_hour: Optional[int],
    status_from: Optional[str],
    status_to: Optional[str],
    total_price: Optional[Decimal] = None,
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Emit structured JSON audit log. Raises RuntimeError if logging fails."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": "info",
        "action": action,
        "initiator": initiator,
        "request_id": get_request_id(),
        "booking_id": booking_id,
        "venue_id": venue_id,
        "requester_id": requester_id,
        "booking_date": _to_json_value(booking_date),
        "start_hour": start_hour,
        "status_from": _to_json_value(status_from),
        "status_to": _to_json_value(status_to),
        "total_price": _to_json_value(total_price),
    }
    if message is not None:
        payload["message"] = message
    if extra:
        payload.update({k: _to_json_value(v) for k, v in extra.items()})

    # Drop None values to keep the log compact.
    compact_payload = {k: v for k, v in payload.items() if v is not None}
    try:
        _audit_logger.info(json.dumps(compact_payload, ensure_ascii=True))
    except Exception as exc:
        raise RuntimeError("failed to emit audit log") from exc
