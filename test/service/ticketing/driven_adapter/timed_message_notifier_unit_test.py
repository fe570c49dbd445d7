import pytest

from ticketing_client.service.ticketing.app.dto.command_outcome import (
    CommandOutcome,
    OutcomeStatus,
)
from ticketing_client.service.ticketing.domain.enum.ticketing_error_kind import TicketingErrorKind
from ticketing_client.service.ticketing.driven_adapter.notification.timed_message_notifier import (
    MessageKind,
    TimedMessageNotifier,
)


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.mark.unit
class TestTimedMessageNotifier:
    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def notifier(self, clock):
        return TimedMessageNotifier(ttl_seconds=5.0, clock=clock)

    def test_success_message_expires(self, notifier, clock):
        notifier.notify(CommandOutcome.success('Logged out successfully'))

        assert notifier.current.text == 'Logged out successfully'
        assert notifier.current.kind is MessageKind.SUCCESS

        clock.now += 5.1
        assert notifier.current is None

    def test_newest_message_wins(self, notifier):
        notifier.notify(CommandOutcome.success('Successfully logged in!'))
        notifier.notify(
            CommandOutcome(
                status=OutcomeStatus.REJECTED,
                message='Purchase failed: Sale Ended',
                error_kind=TicketingErrorKind.SALE_ENDED,
            )
        )

        assert notifier.current.text == 'Purchase failed: Sale Ended'
        assert notifier.current.kind is MessageKind.ERROR

    @pytest.mark.parametrize(
        'status', [OutcomeStatus.INVALID_INPUT, OutcomeStatus.TRANSPORT_FAILED]
    )
    def test_error_kinds(self, notifier, status):
        notifier.notify(CommandOutcome(status=status, message='boom', detail='NetworkError: x'))

        assert notifier.current.kind is MessageKind.ERROR

    def test_superseded_is_not_shown(self, notifier):
        notifier.notify(CommandOutcome.success('Successfully logged in!'))
        notifier.notify(CommandOutcome.superseded('Purchase'))

        assert notifier.current.text == 'Successfully logged in!'

    def test_dismiss(self, notifier):
        notifier.notify(CommandOutcome.success('Data refreshed'))

        notifier.dismiss()

        assert notifier.current is None
