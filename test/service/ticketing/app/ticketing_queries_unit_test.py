"""
Unit tests for the read side: single event lookup, on-demand statistics, dashboard views
"""

import anyio
import attrs
import pytest

from ledger_fakes import BUYER, ORGANIZER, FakeLedger
from ticketing_client.platform.exception.exceptions import NetworkError, SerializationError
from ticketing_client.service.ticketing.app.dto.command_outcome import OutcomeStatus
from ticketing_client.service.ticketing.app.query.event_dashboard_query import (
    DashboardTotals,
    find_event,
    organized_by,
    tickets_for_event,
    totals,
)
from ticketing_client.service.ticketing.app.query.get_event_use_case import GetEventUseCase
from ticketing_client.service.ticketing.app.query.load_event_stats_use_case import (
    LoadEventStatsUseCase,
)
from ticketing_client.service.ticketing.domain.entity.event_stats_entity import EventStats
from ticketing_client.service.ticketing.domain.enum.ticketing_error_kind import TicketingErrorKind
from ticketing_client.service.ticketing.domain.value_object.collection_snapshot import (
    CollectionSnapshot,
)


async def wait_until(predicate, *, timeout: float = 2.0) -> None:
    with anyio.fail_after(timeout):
        while not predicate():
            await anyio.sleep(0)


@pytest.fixture
def get_event_use_case(state_store, translator):
    return GetEventUseCase(state_store=state_store, translator=translator)


@pytest.fixture
def load_stats_use_case(command_deps):
    return LoadEventStatsUseCase(**command_deps)


@pytest.mark.unit
class TestGetEvent:
    @pytest.mark.asyncio
    async def test_found(self, get_event_use_case, ledger, logged_in):
        event = ledger.seed_event(name='Gala')

        outcome = await get_event_use_case.get_by_id(event_id=event.id)

        assert outcome.succeeded
        assert outcome.value == event
        assert outcome.message == 'Loaded Gala'

    @pytest.mark.asyncio
    async def test_not_found(self, get_event_use_case, notifier, logged_in):
        outcome = await get_event_use_case.get_by_id(event_id='42')

        assert outcome.status is OutcomeStatus.REJECTED
        assert outcome.error_kind is TicketingErrorKind.EVENT_NOT_FOUND
        assert notifier.outcomes == []

    @pytest.mark.asyncio
    async def test_malformed_reply(self, get_event_use_case, ledger, logged_in):
        ledger.failures['get_event'] = SerializationError('bad', detail='unknown tag')

        outcome = await get_event_use_case.get_by_id(event_id=1)

        assert outcome.status is OutcomeStatus.TRANSPORT_FAILED

    @pytest.mark.asyncio
    async def test_logout_during_failed_lookup_supersedes_it(
        self, get_event_use_case, session_manager, ledger, notifier, logged_in
    ):
        # Given: a lookup waiting for a ledger that will drop the connection
        ledger.gates['get_event'] = anyio.Event()
        ledger.failures['get_event'] = NetworkError('lost', detail='connection reset')
        outcomes = []

        async def lookup():
            outcomes.append(await get_event_use_case.get_by_id(event_id=1))

        async with anyio.create_task_group() as tg:
            tg.start_soon(lookup)
            await wait_until(lambda: 'get_event' in ledger.calls)

            # When: the user logs out before the failure arrives
            await session_manager.logout()
            ledger.gates['get_event'].set()

        # Then
        assert outcomes[0].status is OutcomeStatus.SUPERSEDED
        assert [o.message for o in notifier.outcomes] == ['Logged out successfully']


@pytest.mark.unit
class TestLoadEventStats:
    @pytest.mark.asyncio
    async def test_stats_are_cached_under_event_id(
        self, load_stats_use_case, state_store, ledger, notifier, logged_in
    ):
        event = ledger.seed_event(price=250_000_000)
        ledger.purchase_tickets(BUYER, event.id, 4)

        outcome = await load_stats_use_case.execute(event_id=event.id)

        assert outcome.succeeded
        expected = EventStats(sold=4, available=96, revenue=1_000_000_000)
        assert outcome.value == expected
        assert state_store.collections.event_stats[event.id] == expected
        assert outcome.message == 'Sold 4, available 96, revenue 10.00000000 ICP'
        assert notifier.outcomes == []

    @pytest.mark.asyncio
    async def test_unknown_event_is_surfaced(
        self, load_stats_use_case, state_store, notifier, logged_in
    ):
        outcome = await load_stats_use_case.execute(event_id=77)

        assert outcome.error_kind is TicketingErrorKind.EVENT_NOT_FOUND
        assert notifier.last is outcome
        assert 77 not in state_store.collections.event_stats

    @pytest.mark.asyncio
    async def test_logout_during_failed_load_supersedes_it(
        self, load_stats_use_case, session_manager, state_store, ledger, notifier, logged_in
    ):
        # Given: statistics waiting for a ledger that will drop the connection
        event = ledger.seed_event()
        ledger.gates['get_event_statistics'] = anyio.Event()
        ledger.failures['get_event_statistics'] = NetworkError('lost', detail='read timeout')
        outcomes = []

        async def load():
            outcomes.append(await load_stats_use_case.execute(event_id=event.id))

        async with anyio.create_task_group() as tg:
            tg.start_soon(load)
            await wait_until(lambda: 'get_event_statistics' in ledger.calls)

            # When
            await session_manager.logout()
            ledger.gates['get_event_statistics'].set()

        # Then: no failure message after the logout
        assert outcomes[0].status is OutcomeStatus.SUPERSEDED
        assert notifier.last.message == 'Logged out successfully'
        assert len(notifier.outcomes) == 1
        assert not state_store.collections.event_stats


@pytest.mark.unit
class TestDashboard:
    @pytest.fixture
    def snapshot(self):
        ledger = FakeLedger()
        mine = ledger.seed_event(organizer=BUYER, price=100)
        theirs = ledger.seed_event(organizer=ORGANIZER, price=10)
        ledger.purchase_tickets(BUYER, mine.id, 2)
        ledger.purchase_tickets(BUYER, theirs.id, 3)
        events = list(ledger.events.values())
        return CollectionSnapshot(
            active_events=events,
            all_events=events,
            tickets=list(ledger.tickets.values()),
            purchases=list(ledger.purchases.values()),
        )

    def test_organized_by(self, snapshot):
        assert [e.organizer for e in organized_by(snapshot, BUYER)] == [BUYER]
        assert organized_by(snapshot, None) == ()

    def test_totals(self, snapshot):
        assert totals(snapshot) == DashboardTotals(
            total_events=2, tickets_sold=5, revenue=2 * 100 + 3 * 10
        )

    def test_totals_of_empty_snapshot(self):
        assert totals(CollectionSnapshot()) == DashboardTotals(
            total_events=0, tickets_sold=0, revenue=0
        )

    def test_find_event_falls_back_to_active_list(self, snapshot):
        only_active = attrs.evolve(snapshot, all_events=())

        assert find_event(only_active, 1).id == 1
        assert find_event(snapshot, 99) is None

    def test_tickets_for_event(self, snapshot):
        assert len(tickets_for_event(snapshot, 1)) == 2
        assert len(tickets_for_event(snapshot, 2)) == 3
