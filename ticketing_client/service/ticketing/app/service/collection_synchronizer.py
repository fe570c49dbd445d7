"""
Collection Synchronizer

Keeps the cached collections of the active session in line with the ledger.

Refresh rules:
- after a successful mutation, every collection listed in REFRESH_TABLE for it is reloaded
- a mutation tied to one event also reloads that event's statistics if they are cached
- reloads run concurrently; a failed reload is logged and leaves that cache stale
- results arriving for a superseded session are dropped
"""

from enum import StrEnum
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Iterable, Mapping, Optional

import anyio
import attrs

from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.interface.i_ledger_channel import ILedgerChannel
from ticketing_client.service.ticketing.app.service.client_state_store import (
    ClientStateStore,
    SessionContext,
)
from ticketing_client.service.ticketing.domain.entity.event_stats_entity import EventStats
from ticketing_client.service.ticketing.domain.enum.refresh_target import (
    ALL_REFRESH_TARGETS,
    RefreshTarget,
)
from ticketing_client.service.ticketing.domain.value_object.result import Err, Ok, Result


class LedgerCommand(StrEnum):
    CREATE_EVENT = 'create_event'
    PURCHASE_TICKETS = 'purchase_tickets'
    USE_TICKET = 'use_ticket'
    DEACTIVATE_EVENT = 'deactivate_event'


REFRESH_TABLE: Mapping[LedgerCommand, FrozenSet[RefreshTarget]] = {
    LedgerCommand.CREATE_EVENT: frozenset(
        {RefreshTarget.ACTIVE_EVENTS, RefreshTarget.ALL_EVENTS}
    ),
    # availability, ticket set, purchase set and reputation can all move
    LedgerCommand.PURCHASE_TICKETS: ALL_REFRESH_TARGETS,
    LedgerCommand.USE_TICKET: frozenset({RefreshTarget.TICKETS, RefreshTarget.PROFILE}),
    LedgerCommand.DEACTIVATE_EVENT: frozenset(
        {RefreshTarget.ACTIVE_EVENTS, RefreshTarget.ALL_EVENTS}
    ),
}


_Fetcher = Callable[[ILedgerChannel, str], Awaitable[Any]]

_FETCHERS: Mapping[RefreshTarget, _Fetcher] = {
    RefreshTarget.ACTIVE_EVENTS: lambda channel, _: channel.list_active_events(),
    RefreshTarget.ALL_EVENTS: lambda channel, _: channel.list_all_events(),
    RefreshTarget.TICKETS: lambda channel, principal: channel.list_user_tickets(
        principal=principal
    ),
    RefreshTarget.PURCHASES: lambda channel, principal: channel.list_user_purchases(
        principal=principal
    ),
    RefreshTarget.PROFILE: lambda channel, principal: channel.get_user_profile(
        principal=principal
    ),
}


@attrs.define(frozen=True)
class RefreshReport:
    refreshed: FrozenSet[str] = frozenset()
    failed: FrozenSet[str] = frozenset()
    discarded: FrozenSet[str] = frozenset()

    @property
    def complete(self) -> bool:
        return not (self.failed or self.discarded)


class CollectionSynchronizer:
    def __init__(self, state_store: ClientStateStore) -> None:
        self.state_store = state_store

    @Logger.io
    async def refresh_all(self, context: SessionContext) -> RefreshReport:
        return await self.refresh(context, ALL_REFRESH_TARGETS)

    @Logger.io
    async def refresh_after(
        self, context: SessionContext, command: LedgerCommand, *, event_id: Optional[int] = None
    ) -> RefreshReport:
        stats_ids = []
        if event_id is not None and event_id in self.state_store.collections.event_stats:
            stats_ids.append(event_id)
        return await self.refresh(context, REFRESH_TABLE[command], stats_event_ids=stats_ids)

    async def refresh(
        self,
        context: SessionContext,
        targets: Iterable[RefreshTarget],
        *,
        stats_event_ids: Iterable[int] = (),
    ) -> RefreshReport:
        if not context.is_authenticated:
            return RefreshReport()

        outcomes: Dict[str, Optional[bool]] = {}
        async with anyio.create_task_group() as tg:
            for target in targets:
                tg.start_soon(self._refresh_collection, context, target, outcomes)
            for event_id in stats_event_ids:
                tg.start_soon(self._refresh_stats, context, event_id, outcomes)

        report = RefreshReport(
            refreshed=frozenset(k for k, ok in outcomes.items() if ok is True),
            failed=frozenset(k for k, ok in outcomes.items() if ok is False),
            discarded=frozenset(k for k, ok in outcomes.items() if ok is None),
        )
        if report.failed:
            Logger.base.warning(f'⚠️ [SYNC] Stale after refresh: {sorted(report.failed)}')
        return report

    async def _refresh_collection(
        self,
        context: SessionContext,
        target: RefreshTarget,
        outcomes: Dict[str, Optional[bool]],
    ) -> None:
        assert context.channel is not None and context.principal is not None
        try:
            value = await _FETCHERS[target](context.channel, context.principal)
        except Exception as e:
            # No automatic retry; the next reload tries again
            Logger.base.warning(f'⚠️ [SYNC] Failed to load {target}: {type(e).__name__}: {e}')
            outcomes[target] = False
            return

        applied = self.state_store.apply(
            context, lambda snapshot: attrs.evolve(snapshot, **{target.value: value})
        )
        if not applied:
            Logger.base.info(
                f'[SYNC] Dropped {target} for superseded session #{context.generation}'
            )
        outcomes[target] = True if applied else None

    async def _refresh_stats(
        self, context: SessionContext, event_id: int, outcomes: Dict[str, Optional[bool]]
    ) -> None:
        assert context.channel is not None
        key = f'event_stats:{event_id}'
        try:
            result = await context.channel.get_event_statistics(event_id=event_id)
        except Exception as e:
            Logger.base.warning(
                f'⚠️ [SYNC] Failed to load stats of event {event_id}: {type(e).__name__}: {e}'
            )
            outcomes[key] = False
            return

        if isinstance(result, Err):
            Logger.base.warning(f'⚠️ [SYNC] Stats of event {event_id}: {result.kind.display_name}')
            outcomes[key] = False
            return
        outcomes[key] = self._store_stats(context, event_id, result.value)

    async def fetch_event_stats(
        self, context: SessionContext, *, event_id: int
    ) -> Result[EventStats]:
        """Fetch one event's statistics and cache them on success. Raises TransportError."""
        assert context.channel is not None
        result = await context.channel.get_event_statistics(event_id=event_id)
        if isinstance(result, Ok):
            self._store_stats(context, event_id, result.value)
        return result

    def _store_stats(
        self, context: SessionContext, event_id: int, stats: EventStats
    ) -> Optional[bool]:
        applied = self.state_store.apply(
            context, lambda snapshot: snapshot.with_event_stats(event_id, stats)
        )
        return True if applied else None
