from typing import Any

from ticketing_client.platform.exception.exceptions import LocalValidationError, TransportError
from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.command.input_parsing import (
    parse_unsigned,
    require_session,
)
from ticketing_client.service.ticketing.app.dto.command_outcome import CommandOutcome
from ticketing_client.service.ticketing.app.interface.i_notifier import INotifier
from ticketing_client.service.ticketing.app.service.client_state_store import ClientStateStore
from ticketing_client.service.ticketing.app.service.collection_synchronizer import (
    CollectionSynchronizer,
)
from ticketing_client.service.ticketing.app.service.result_translator import ResultTranslator
from ticketing_client.service.ticketing.domain.display_units import format_price
from ticketing_client.service.ticketing.domain.entity.event_stats_entity import EventStats


class LoadEventStatsUseCase:
    """On-demand statistics of one event, cached in the snapshot under its id."""

    action = 'load statistics'

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

    @Logger.io
    async def execute(self, *, event_id: Any) -> CommandOutcome:
        try:
            context = require_session(self.state_store)
            wire_event_id = parse_unsigned(event_id, 'Event ID')
        except LocalValidationError as e:
            return self._surface(self.translator.from_validation_error(e))

        try:
            result = await self.synchronizer.fetch_event_stats(context, event_id=wire_event_id)
        except TransportError as e:
            if not self.state_store.is_current(context):
                return CommandOutcome.superseded(self.action)
            return self._surface(self.translator.from_transport_error(e, action=self.action))

        if not self.state_store.is_current(context):
            return CommandOutcome.superseded(self.action)
        outcome = self.translator.to_outcome(
            result, action=self.action, success_message=_describe_stats
        )
        # Successful loads only fill the stats panel, failures are worth a message
        if outcome.is_error:
            self._surface(outcome)
        return outcome

    def _surface(self, outcome: CommandOutcome) -> CommandOutcome:
        self.notifier.notify(outcome)
        return outcome


def _describe_stats(stats: EventStats) -> str:
    return f'Sold {stats.sold}, available {stats.available}, revenue {format_price(stats.revenue)}'
