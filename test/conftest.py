"""
Test Configuration and Fixtures

Environment setup runs before any application import, because settings and the loguru
sinks are configured at import time.

Fixtures wire the real application services (state store, synchronizer, translator,
session manager, use cases) to the in-memory collaborators from ``ledger_fakes``.
"""

from datetime import timezone
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)
    os.environ.setdefault('DEPLOY_TARGET', 'local')
    os.environ.setdefault('DEBUG', 'false')


_early_setup_test_environment()

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from ledger_fakes import (  # noqa: E402
    BUYER,
    FakeAuthProvider,
    FakeChannelFactory,
    FakeLedger,
    RecordingNotifier,
)
from ticketing_client.service.ticketing.app.command.create_event_use_case import (  # noqa: E402
    CreateEventUseCase,
)
from ticketing_client.service.ticketing.app.command.deactivate_event_use_case import (  # noqa: E402
    DeactivateEventUseCase,
)
from ticketing_client.service.ticketing.app.command.mark_ticket_used_use_case import (  # noqa: E402
    MarkTicketUsedUseCase,
)
from ticketing_client.service.ticketing.app.command.purchase_tickets_use_case import (  # noqa: E402
    PurchaseTicketsUseCase,
)
from ticketing_client.service.ticketing.app.command.verify_ticket_use_case import (  # noqa: E402
    VerifyTicketUseCase,
)
from ticketing_client.service.ticketing.app.service.client_state_store import (  # noqa: E402
    ClientStateStore,
)
from ticketing_client.service.ticketing.app.service.collection_synchronizer import (  # noqa: E402
    CollectionSynchronizer,
)
from ticketing_client.service.ticketing.app.service.identity_session_manager import (  # noqa: E402
    IdentitySessionManager,
)
from ticketing_client.service.ticketing.app.service.result_translator import (  # noqa: E402
    ResultTranslator,
)
from ticketing_client.service.ticketing.domain.display_units import nanos_to_datetime  # noqa: E402


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def state_store():
    return ClientStateStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def translator():
    return ResultTranslator()


@pytest.fixture
def synchronizer(state_store):
    return CollectionSynchronizer(state_store)


@pytest.fixture
def auth_provider():
    return FakeAuthProvider(principal=BUYER)


@pytest.fixture
def channel_factory(ledger):
    return FakeChannelFactory(ledger)


@pytest.fixture
def session_manager(auth_provider, channel_factory, state_store, synchronizer, notifier):
    return IdentitySessionManager(
        auth_provider=auth_provider,
        channel_factory=channel_factory,
        state_store=state_store,
        synchronizer=synchronizer,
        notifier=notifier,
        identity_provider_url='https://identity.example/#authorize',
    )


@pytest.fixture
def command_deps(state_store, translator, synchronizer, notifier):
    return dict(
        state_store=state_store,
        translator=translator,
        synchronizer=synchronizer,
        notifier=notifier,
    )


@pytest.fixture
def create_event_use_case(command_deps, ledger):
    fixed_now = nanos_to_datetime(ledger.now_ns, tz=timezone.utc)
    return CreateEventUseCase(clock=lambda: fixed_now, **command_deps)


@pytest.fixture
def purchase_use_case(command_deps):
    return PurchaseTicketsUseCase(**command_deps)


@pytest.fixture
def verify_use_case(command_deps):
    return VerifyTicketUseCase(**command_deps)


@pytest.fixture
def mark_used_use_case(command_deps):
    return MarkTicketUsedUseCase(**command_deps)


@pytest.fixture
def deactivate_use_case(command_deps):
    return DeactivateEventUseCase(**command_deps)


@pytest_asyncio.fixture
async def logged_in(session_manager, notifier):
    """Buyer session established through the regular login path."""
    outcome = await session_manager.login()
    assert outcome.succeeded, outcome
    notifier.outcomes.clear()
    return session_manager.state_store.session
