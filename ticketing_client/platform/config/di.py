"""
https://python-dependency-injector.ets-labs.org/index.html
"""

from dependency_injector import containers, providers

from ticketing_client.platform.config.core_setting import Settings
from ticketing_client.service.ticketing.app.command.create_event_use_case import (
    CreateEventUseCase,
)
from ticketing_client.service.ticketing.app.command.deactivate_event_use_case import (
    DeactivateEventUseCase,
)
from ticketing_client.service.ticketing.app.command.mark_ticket_used_use_case import (
    MarkTicketUsedUseCase,
)
from ticketing_client.service.ticketing.app.command.purchase_tickets_use_case import (
    PurchaseTicketsUseCase,
)
from ticketing_client.service.ticketing.app.command.verify_ticket_use_case import (
    VerifyTicketUseCase,
)
from ticketing_client.service.ticketing.app.query.get_event_use_case import GetEventUseCase
from ticketing_client.service.ticketing.app.query.load_event_stats_use_case import (
    LoadEventStatsUseCase,
)
from ticketing_client.service.ticketing.app.service.client_state_store import ClientStateStore
from ticketing_client.service.ticketing.app.service.collection_synchronizer import (
    CollectionSynchronizer,
)
from ticketing_client.service.ticketing.app.service.identity_session_manager import (
    IdentitySessionManager,
)
from ticketing_client.service.ticketing.app.service.result_translator import ResultTranslator
from ticketing_client.service.ticketing.driven_adapter.auth.delegation_auth_provider import (
    DelegationAuthProvider,
)
from ticketing_client.service.ticketing.driven_adapter.channel.ledger_channel_factory import (
    LedgerChannelFactory,
)
from ticketing_client.service.ticketing.driven_adapter.notification.timed_message_notifier import (
    TimedMessageNotifier,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # External collaborators
    auth_provider = providers.Singleton(
        DelegationAuthProvider, session_file=config_service.provided.SESSION_FILE
    )
    channel_factory = providers.Singleton(LedgerChannelFactory, settings=config_service)
    notifier = providers.Singleton(
        TimedMessageNotifier, ttl_seconds=config_service.provided.NOTIFICATION_TTL_SECONDS
    )

    # Session state (one store per process, shared by every orchestrator)
    state_store = providers.Singleton(ClientStateStore)
    translator = providers.Singleton(ResultTranslator)
    synchronizer = providers.Singleton(CollectionSynchronizer, state_store=state_store)

    session_manager = providers.Singleton(
        IdentitySessionManager,
        auth_provider=auth_provider,
        channel_factory=channel_factory,
        state_store=state_store,
        synchronizer=synchronizer,
        notifier=notifier,
        identity_provider_url=config_service.provided.IDENTITY_PROVIDER_URL,
    )

    # Command orchestrators (each owns its busy guard, so Singleton)
    create_event_use_case = providers.Singleton(
        CreateEventUseCase,
        state_store=state_store,
        translator=translator,
        synchronizer=synchronizer,
        notifier=notifier,
    )
    purchase_tickets_use_case = providers.Singleton(
        PurchaseTicketsUseCase,
        state_store=state_store,
        translator=translator,
        synchronizer=synchronizer,
        notifier=notifier,
    )
    verify_ticket_use_case = providers.Singleton(
        VerifyTicketUseCase,
        state_store=state_store,
        translator=translator,
        synchronizer=synchronizer,
        notifier=notifier,
    )
    mark_ticket_used_use_case = providers.Singleton(
        MarkTicketUsedUseCase,
        state_store=state_store,
        translator=translator,
        synchronizer=synchronizer,
        notifier=notifier,
    )
    deactivate_event_use_case = providers.Singleton(
        DeactivateEventUseCase,
        state_store=state_store,
        translator=translator,
        synchronizer=synchronizer,
        notifier=notifier,
    )

    # Queries
    get_event_use_case = providers.Singleton(
        GetEventUseCase, state_store=state_store, translator=translator
    )
    load_event_stats_use_case = providers.Singleton(
        LoadEventStatsUseCase,
        state_store=state_store,
        translator=translator,
        synchronizer=synchronizer,
        notifier=notifier,
    )


container = Container()
