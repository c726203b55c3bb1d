from __future__ import annotations

from datetime import UTC, datetime

from context_engine.errors import MalformedMessage
from context_engine.models import InboundMessage, utcnow

_SUPPORTED_TYPES = {"text", "image", "audio", "video", "document"}


def _from_epoch(seconds: float) -> datetime:
    try:
        return datetime.fromtimestamp(seconds, tz=UTC)
    except (ValueError, OverflowError, OSError) as exc:
        # NaN, out of range for the platform, or a millisecond epoch past year 9999
        raise MalformedMessage("timestamp", "not a valid timestamp") from exc


def _parse_timestamp(value: object) -> datetime:
    """Accept datetimes, epoch seconds (int, float or digit string) and ISO-8601 text."""
    if value is None or value == "":
        return utcnow()
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, bool):
        raise MalformedMessage("timestamp", "not a valid timestamp")
    if isinstance(value, (int, float)):
        return _from_epoch(value)
    if isinstance(value, str):
        if value.isdigit():
            return _from_epoch(int(value))
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise MalformedMessage("timestamp", "not a valid timestamp") from exc
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    raise MalformedMessage("timestamp", "not a valid timestamp")


def _optional_str(record: dict, key: str) -> str | None:
    value = record.get(key)
    if value is None or value == "":
        return None
    return str(value)


def parse_message(record: dict) -> InboundMessage:
    """Validate a message-bus record and convert it to an InboundMessage.

    ``from`` and ``body`` are required; everything else has a default.
    Raises MalformedMessage before any conversation state is touched.
    """
    if not isinstance(record, dict):
        raise MalformedMessage("record", "not a mapping")

    sender = record.get("from")
    if not isinstance(sender, str):
        raise MalformedMessage("from")
    if not sender.strip():
        raise MalformedMessage("from", "empty")

    body = record.get("body")
    if not isinstance(body, str):
        raise MalformedMessage("body")

    msg_type = record.get("type") or "text"
    if msg_type not in _SUPPORTED_TYPES:
        raise MalformedMessage("type", f"unsupported ({msg_type})")

    is_group = bool(record.get("isGroup", False))
    group_id = _optional_str(record, "groupId")
    if is_group and group_id is None:
        raise MalformedMessage("groupId", "missing for a group message")

    return InboundMessage(
        id=str(record.get("id") or ""),
        from_number=sender.strip(),
        to=str(record.get("to") or ""),
        body=body,
        timestamp=_parse_timestamp(record.get("timestamp")),
        type=msg_type,
        is_group=is_group,
        group_id=group_id,
        sender_name=_optional_str(record, "senderName"),
        quoted_message=_optional_str(record, "quotedMessage"),
    )
