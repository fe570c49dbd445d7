"""Timed Message Notifier - single transient status line, newest message wins"""

from enum import StrEnum
import time
from typing import Callable, Optional

import attrs

from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.dto.command_outcome import (
    CommandOutcome,
    OutcomeStatus,
)
from ticketing_client.service.ticketing.app.interface.i_notifier import INotifier


class MessageKind(StrEnum):
    SUCCESS = 'success'
    ERROR = 'error'
    INFO = 'info'


@attrs.define(frozen=True)
class Notification:
    text: str
    kind: MessageKind
    posted_at: float


class TimedMessageNotifier(INotifier):
    """
    Keeps the latest outcome message for ``ttl_seconds``.

    Superseded outcomes are never shown. Errors also go to the log with their detail.
    """

    def __init__(
        self, *, ttl_seconds: float = 5.0, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._latest: Optional[Notification] = None

    def notify(self, outcome: CommandOutcome) -> None:
        if outcome.status is OutcomeStatus.SUPERSEDED:
            return

        kind = self._kind_of(outcome)
        self._latest = Notification(text=outcome.message, kind=kind, posted_at=self._clock())

        if kind is MessageKind.ERROR:
            detail = f' ({outcome.detail})' if outcome.detail else ''
            Logger.base.warning(f'⚠️ [NOTIFY] {outcome.message}{detail}')
        else:
            Logger.base.info(f'[NOTIFY] {outcome.message}')

    @property
    def current(self) -> Optional[Notification]:
        if self._latest is None:
            return None
        if self._clock() - self._latest.posted_at > self._ttl_seconds:
            return None
        return self._latest

    def dismiss(self) -> None:
        self._latest = None

    @staticmethod
    def _kind_of(outcome: CommandOutcome) -> MessageKind:
        if outcome.is_error:
            return MessageKind.ERROR
        if outcome.succeeded:
            return MessageKind.SUCCESS
        return MessageKind.INFO
