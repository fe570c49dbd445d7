"""
Tagged result of a ledger call.

The ledger answers many operations with ``Ok(value)`` or ``Err(kind)``. Both are ordinary
values: an ``Err`` is a deterministic rejection, never a transport failure, so callers
narrow with ``isinstance`` instead of catching exceptions.
"""

from typing import Generic, TypeVar, Union

import attrs

from ticketing_client.service.ticketing.domain.enum.ticketing_error_kind import TicketingErrorKind


T = TypeVar('T')


@attrs.define(frozen=True)
class Ok(Generic[T]):
    value: T


@attrs.define(frozen=True)
class Err:
    kind: TicketingErrorKind


Result = Union[Ok[T], Err]
