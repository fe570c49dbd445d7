"""Ticketing Domain Enums"""

from ticketing_client.service.ticketing.domain.enum.refresh_target import (
    ALL_REFRESH_TARGETS,
    RefreshTarget,
)
from ticketing_client.service.ticketing.domain.enum.session_status import SessionStatus
from ticketing_client.service.ticketing.domain.enum.ticketing_error_kind import TicketingErrorKind

__all__ = ['ALL_REFRESH_TARGETS', 'RefreshTarget', 'SessionStatus', 'TicketingErrorKind']
