"""
Client State Store

Holds the active session and the cached collections of that session. Both are immutable
values swapped wholesale. Every session change bumps the generation, so work issued under
an older session can recognise itself as superseded and drop its result.

All mutators run synchronously between awaits on the single event loop, so no locking is
needed.
"""

from typing import Callable, Optional

import attrs

from ticketing_client.service.ticketing.app.interface.i_ledger_channel import ILedgerChannel
from ticketing_client.service.ticketing.domain.enum.session_status import SessionStatus
from ticketing_client.service.ticketing.domain.value_object.collection_snapshot import (
    EMPTY_SNAPSHOT,
    CollectionSnapshot,
)
from ticketing_client.service.ticketing.domain.value_object.identity import Identity


@attrs.define(frozen=True, eq=False)
class SessionContext:
    generation: int
    status: SessionStatus = SessionStatus.ANONYMOUS
    identity: Optional[Identity] = None
    channel: Optional[ILedgerChannel] = None

    @property
    def principal(self) -> Optional[str]:
        return self.identity.principal if self.identity else None

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED and self.channel is not None


class ClientStateStore:
    def __init__(self) -> None:
        self._session = SessionContext(generation=0)
        self._collections = EMPTY_SNAPSHOT

    @property
    def session(self) -> SessionContext:
        return self._session

    @property
    def collections(self) -> CollectionSnapshot:
        return self._collections

    def is_current(self, context: SessionContext) -> bool:
        return self._session is context

    def begin_authentication(self) -> Optional[SessionContext]:
        """ANONYMOUS -> AUTHENTICATING. None when not anonymous."""
        if self._session.status is not SessionStatus.ANONYMOUS:
            return None
        self._session = SessionContext(
            generation=self._session.generation + 1, status=SessionStatus.AUTHENTICATING
        )
        return self._session

    def establish(
        self, pending: SessionContext, *, identity: Identity, channel: ILedgerChannel
    ) -> Optional[SessionContext]:
        """AUTHENTICATING -> AUTHENTICATED. None when the pending login was superseded."""
        if not self.is_current(pending) or pending.status is not SessionStatus.AUTHENTICATING:
            return None
        self._session = SessionContext(
            generation=pending.generation,
            status=SessionStatus.AUTHENTICATED,
            identity=identity,
            channel=channel,
        )
        self._collections = EMPTY_SNAPSHOT
        return self._session

    def abandon(self, pending: SessionContext) -> None:
        """AUTHENTICATING -> ANONYMOUS after a failed or cancelled login."""
        if self.is_current(pending):
            self._session = SessionContext(generation=pending.generation + 1)

    def clear(self) -> SessionContext:
        """Drop the session and every cache at once. Returns the session that was active."""
        previous = self._session
        self._session = SessionContext(generation=previous.generation + 1)
        self._collections = EMPTY_SNAPSHOT
        return previous

    def apply(
        self,
        context: SessionContext,
        update: Callable[[CollectionSnapshot], CollectionSnapshot],
    ) -> bool:
        """Replace the snapshot if ``context`` is still the active session."""
        if not self.is_current(context):
            return False
        self._collections = update(self._collections)
        return True
