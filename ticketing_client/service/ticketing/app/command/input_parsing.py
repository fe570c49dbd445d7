"""Local precondition checks run before any remote call."""

from datetime import datetime
from typing import Any, Optional

from ticketing_client.platform.exception.exceptions import LocalValidationError
from ticketing_client.service.ticketing.app.service.client_state_store import (
    ClientStateStore,
    SessionContext,
)
from ticketing_client.service.ticketing.domain.display_units import datetime_to_nanos


NAT32_MAX = 2**32 - 1
NAT64_MAX = 2**64 - 1


def require_session(state_store: ClientStateStore) -> SessionContext:
    context = state_store.session
    if not context.is_authenticated:
        raise LocalValidationError('Please log in first')
    return context


def require_text(value: Optional[str], label: str) -> str:
    if value is None or not str(value).strip():
        raise LocalValidationError(f'{label} is required', field=label)
    return str(value).strip()


def parse_unsigned(value: Any, label: str, *, maximum: int = NAT64_MAX, minimum: int = 0) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise LocalValidationError(f'{label} is required', field=label)
    if isinstance(value, bool):
        raise LocalValidationError(f'{label} must be a whole number', field=label)

    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        number = int(value.strip())
    else:
        raise LocalValidationError(f'{label} must be a whole number', field=label)

    if number < minimum:
        raise LocalValidationError(f'{label} must be at least {minimum}', field=label)
    if number > maximum:
        raise LocalValidationError(f'{label} must be at most {maximum}', field=label)
    return number


def parse_timestamp(value: Any, label: str) -> int:
    """datetime, ISO-8601 text or raw ns count -> ns since epoch"""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise LocalValidationError(f'{label} is required', field=label)
    if isinstance(value, datetime):
        return datetime_to_nanos(value)
    if isinstance(value, str):
        try:
            return datetime_to_nanos(datetime.fromisoformat(value.strip()))
        except ValueError:
            raise LocalValidationError(f'{label} is not a valid date', field=label) from None
    return parse_unsigned(value, label)
