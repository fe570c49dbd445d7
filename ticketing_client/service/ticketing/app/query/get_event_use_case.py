from typing import Any

from ticketing_client.platform.exception.exceptions import LocalValidationError, TransportError
from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.command.input_parsing import (
    parse_unsigned,
    require_session,
)
from ticketing_client.service.ticketing.app.dto.command_outcome import CommandOutcome
from ticketing_client.service.ticketing.app.service.client_state_store import ClientStateStore
from ticketing_client.service.ticketing.app.service.result_translator import ResultTranslator


class GetEventUseCase:
    action = 'load event'

    def __init__(self, *, state_store: ClientStateStore, translator: ResultTranslator) -> None:
        self.state_store = state_store
        self.translator = translator

    @Logger.io
    async def get_by_id(self, *, event_id: Any) -> CommandOutcome:
        """Fetch one event straight from the ledger, bypassing the cached lists."""
        try:
            context = require_session(self.state_store)
            wire_event_id = parse_unsigned(event_id, 'Event ID')
        except LocalValidationError as e:
            return self.translator.from_validation_error(e)

        assert context.channel is not None
        try:
            result = await context.channel.get_event(event_id=wire_event_id)
        except TransportError as e:
            if not self.state_store.is_current(context):
                return CommandOutcome.superseded(self.action)
            return self.translator.from_transport_error(e, action=self.action)

        if not self.state_store.is_current(context):
            return CommandOutcome.superseded(self.action)
        return self.translator.to_outcome(
            result, action=self.action, success_message=lambda event: f'Loaded {event.name}'
        )
