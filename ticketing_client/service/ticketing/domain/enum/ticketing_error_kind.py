"""
Ticketing Error Kind - Domain Value Object

Closed set of rejection reasons the ledger service reports inside an ``Err`` branch.
Values are the exact wire tags.
"""

import re
from enum import StrEnum


_CAPITAL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


class TicketingErrorKind(StrEnum):
    EVENT_NOT_FOUND = 'EventNotFound'
    INSUFFICIENT_TICKETS = 'InsufficientTickets'
    EXCEEDS_MAX_TICKETS_PER_USER = 'ExceedsMaxTicketsPerUser'
    SALE_NOT_STARTED = 'SaleNotStarted'
    SALE_ENDED = 'SaleEnded'
    EVENT_INACTIVE = 'EventInactive'
    UNAUTHORIZED = 'Unauthorized'
    TICKET_NOT_FOUND = 'TicketNotFound'
    ALREADY_USED = 'AlreadyUsed'
    INVALID_VERIFICATION_CODE = 'InvalidVerificationCode'

    @property
    def display_name(self) -> str:
        """`SaleNotStarted` -> `Sale Not Started`"""
        return _CAPITAL_BOUNDARY.sub(' ', self.value)

    @classmethod
    def from_tag(cls, tag: str) -> 'TicketingErrorKind':
        """Raises ValueError for tags outside the closed set."""
        return cls(tag)
