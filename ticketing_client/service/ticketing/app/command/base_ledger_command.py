from typing import Awaitable, Callable, ClassVar, Optional, TypeVar

from ticketing_client.platform.exception.exceptions import LocalValidationError, TransportError
from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.command.in_flight_guard import InFlightGuard
from ticketing_client.service.ticketing.app.dto.command_outcome import (
    CommandOutcome,
    OutcomeStatus,
)
from ticketing_client.service.ticketing.app.interface.i_ledger_channel import ILedgerChannel
from ticketing_client.service.ticketing.app.interface.i_notifier import INotifier
from ticketing_client.service.ticketing.app.service.client_state_store import (
    ClientStateStore,
    SessionContext,
)
from ticketing_client.service.ticketing.app.service.collection_synchronizer import (
    CollectionSynchronizer,
    LedgerCommand,
)
from ticketing_client.service.ticketing.app.service.result_translator import (
    ResultTranslator,
    SuccessMessage,
)
from ticketing_client.service.ticketing.domain.value_object.result import Result


T = TypeVar('T')


class BaseLedgerCommand:
    """
    Shared contract of the command orchestrators:

    1. local precondition check (subclass, raises LocalValidationError)
    2. busy guard
    3. remote call with wire-typed arguments
    4. translation of the tagged result
    5. refresh on success, notification either way
    """

    action: ClassVar[str]

    def __init__(
        self,
        *,
        state_store: ClientStateStore,
        translator: ResultTranslator,
        synchronizer: CollectionSynchronizer,
        notifier: INotifier,
    ) -> None:
        self.state_store = state_store
        self.translator = translator
        self.synchronizer = synchronizer
        self.notifier = notifier
        self.guard = InFlightGuard(self.action)

    @property
    def busy(self) -> bool:
        return self.guard.busy

    async def _invoke(
        self,
        context: SessionContext,
        call: Callable[[ILedgerChannel], Awaitable[Result[T]]],
        *,
        success_message: SuccessMessage,
        refresh: Optional[LedgerCommand] = None,
        event_id: Optional[int] = None,
    ) -> CommandOutcome:
        assert context.channel is not None
        try:
            result = await call(context.channel)
        except TransportError as e:
            if not self.state_store.is_current(context):
                return CommandOutcome.superseded(self.action)
            return self._surface(self.translator.from_transport_error(e, action=self.action))

        if not self.state_store.is_current(context):
            Logger.base.info(
                f'[{self.action.upper()}] Dropping late result of session #{context.generation}'
            )
            return CommandOutcome.superseded(self.action)

        outcome = self.translator.to_outcome(
            result, action=self.action, success_message=success_message
        )
        if outcome.succeeded and refresh is not None:
            await self.synchronizer.refresh_after(context, refresh, event_id=event_id)
        return self._surface(outcome)

    def _reject_locally(self, error: LocalValidationError) -> CommandOutcome:
        return self._surface(self.translator.from_validation_error(error))

    def _surface(self, outcome: CommandOutcome) -> CommandOutcome:
        if outcome.status is not OutcomeStatus.SUPERSEDED:
            self.notifier.notify(outcome)
        return outcome
