"""User-facing outcome of a command, query or session action."""

from enum import Enum
from typing import Any, Optional

import attrs

from ticketing_client.service.ticketing.domain.enum.ticketing_error_kind import TicketingErrorKind


class OutcomeStatus(Enum):
    SUCCEEDED = 'succeeded'
    INVALID_INPUT = 'invalid_input'  # rejected locally, nothing was sent
    REJECTED = 'rejected'  # backend Err, did not take effect
    TRANSPORT_FAILED = 'transport_failed'  # unknown whether it took effect
    SUPERSEDED = 'superseded'  # completed after the issuing session ended


@attrs.define(frozen=True)
class CommandOutcome:
    status: OutcomeStatus
    message: str
    value: Any = None
    error_kind: Optional[TicketingErrorKind] = None
    detail: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED

    @property
    def is_error(self) -> bool:
        return self.status in (
            OutcomeStatus.INVALID_INPUT,
            OutcomeStatus.REJECTED,
            OutcomeStatus.TRANSPORT_FAILED,
        )

    @classmethod
    def success(cls, message: str, value: Any = None) -> 'CommandOutcome':
        return cls(status=OutcomeStatus.SUCCEEDED, message=message, value=value)

    @classmethod
    def invalid_input(cls, message: str) -> 'CommandOutcome':
        return cls(status=OutcomeStatus.INVALID_INPUT, message=message)

    @classmethod
    def superseded(cls, action: str) -> 'CommandOutcome':
        return cls(
            status=OutcomeStatus.SUPERSEDED,
            message=f'{action} finished after the session ended; result discarded',
        )
