from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Tuple
from urllib.parse import parse_qs, urlsplit

from ..common.datetime_utils import ensure_aware
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_BADGE_FIRST_NAME_FIELD, DEFAULT_BADGE_LAST_NAME_FIELD
from ..core.enums import ActionCode
from ..core.exceptions import ValidationError
from .model import NewRecord


def prepare_new_record(record: NewRecord) -> NewRecord:
    """Validate a captured tuple and fill in the canonical action label."""

    first_name = require_non_empty(record.first_name, "first_name")
    last_name = require_non_empty(record.last_name, "last_name")

    try:
        action = ActionCode(record.action)
    except ValueError:
        raise ValidationError(f"Unknown action: {record.action!r}")

    label = (record.action_label or "").strip() or action.label
    if ActionCode.from_label(label) != action:
        raise ValidationError(f"Action label {label!r} does not match action {action.value}")

    if not isinstance(record.timestamp, datetime):
        raise ValidationError("timestamp must be a datetime")

    return replace(
        record,
        first_name=first_name,
        last_name=last_name,
        action=action,
        action_label=action.label,
        timestamp=ensure_aware(record.timestamp),
    )


def suggest_action(now: datetime) -> ActionCode:
    """Pre-select the most likely action for the local hour of day."""

    hour = now.hour
    if 7 <= hour < 12:
        return ActionCode.TIME_IN
    if hour == 12:
        return ActionCode.LUNCH_OUT
    if hour == 13:
        return ActionCode.LUNCH_IN
    if 15 <= hour <= 22:
        return ActionCode.TIME_OUT
    return ActionCode.TIME_IN


def parse_badge_payload(
    text: str,
    *,
    first_name_field: str = DEFAULT_BADGE_FIRST_NAME_FIELD,
    last_name_field: str = DEFAULT_BADGE_LAST_NAME_FIELD,
) -> Tuple[str, str]:
    """Extract ``(first_name, last_name)`` from a decoded badge URL."""

    query = urlsplit((text or "").strip()).query
    if not query:
        raise ValidationError("Badge payload carries no name parameters")

    params = parse_qs(query)
    first_name = (params.get(first_name_field) or [""])[0].strip()
    last_name = (params.get(last_name_field) or [""])[0].strip()
    if not first_name or not last_name:
        raise ValidationError("Badge payload is missing a name parameter")
    return first_name, last_name
