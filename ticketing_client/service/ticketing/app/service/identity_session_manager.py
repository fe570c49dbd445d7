"""
Identity Session Manager

Owns the lifecycle of the authenticated identity:

    ANONYMOUS -> AUTHENTICATING -> AUTHENTICATED -> ANONYMOUS (logout only)

A login finishes by building a channel for the new identity, swapping it into the state
store and loading every collection. A logout issued while a login is still running
supersedes it: the late login drops its channel instead of installing it.
"""

from typing import Optional

from ticketing_client.platform.exception.exceptions import AuthProviderError, TransportError
from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.dto.command_outcome import (
    CommandOutcome,
    OutcomeStatus,
)
from ticketing_client.service.ticketing.app.interface.i_auth_provider import IAuthProvider
from ticketing_client.service.ticketing.app.interface.i_ledger_channel import ILedgerChannel
from ticketing_client.service.ticketing.app.interface.i_ledger_channel_factory import (
    ILedgerChannelFactory,
)
from ticketing_client.service.ticketing.app.interface.i_notifier import INotifier
from ticketing_client.service.ticketing.app.service.client_state_store import (
    ClientStateStore,
    SessionContext,
)
from ticketing_client.service.ticketing.app.service.collection_synchronizer import (
    CollectionSynchronizer,
)
from ticketing_client.service.ticketing.domain.enum.session_status import SessionStatus
from ticketing_client.service.ticketing.domain.value_object.identity import Identity


class IdentitySessionManager:
    def __init__(
        self,
        *,
        auth_provider: IAuthProvider,
        channel_factory: ILedgerChannelFactory,
        state_store: ClientStateStore,
        synchronizer: CollectionSynchronizer,
        notifier: INotifier,
        identity_provider_url: str,
    ) -> None:
        self.auth_provider = auth_provider
        self.channel_factory = channel_factory
        self.state_store = state_store
        self.synchronizer = synchronizer
        self.notifier = notifier
        self.identity_provider_url = identity_provider_url

    @property
    def status(self) -> SessionStatus:
        return self.state_store.session.status

    @property
    def principal(self) -> Optional[str]:
        return self.state_store.session.principal

    @property
    def is_busy(self) -> bool:
        """True while a login is outstanding; the login control stays disabled."""
        return self.status is SessionStatus.AUTHENTICATING

    @Logger.io
    async def restore(self) -> CommandOutcome:
        """Silently resume a session the provider still holds."""
        try:
            await self.auth_provider.create()
            has_session = await self.auth_provider.is_authenticated()
        except AuthProviderError as e:
            return self._surface(
                CommandOutcome(
                    status=OutcomeStatus.TRANSPORT_FAILED,
                    message='Authentication initialization failed',
                    detail=e.message,
                )
            )

        if not has_session:
            Logger.base.info('[SESSION] No stored session, staying anonymous')
            return CommandOutcome.success('Not logged in')

        pending = self.state_store.begin_authentication()
        if pending is None:
            return CommandOutcome.invalid_input(self._not_anonymous_message())

        identity = self.auth_provider.get_identity()
        if identity is None:
            self.state_store.abandon(pending)
            return CommandOutcome.success('Not logged in')

        return await self._finish_login(pending, identity)

    @Logger.io
    async def login(self) -> CommandOutcome:
        pending = self.state_store.begin_authentication()
        if pending is None:
            return self._surface(CommandOutcome.invalid_input(self._not_anonymous_message()))

        try:
            approved = await self.auth_provider.login(
                identity_provider_url=self.identity_provider_url
            )
        except AuthProviderError as e:
            self.state_store.abandon(pending)
            return self._surface(
                CommandOutcome(
                    status=OutcomeStatus.TRANSPORT_FAILED, message='Login failed', detail=e.message
                )
            )

        if not approved:
            self.state_store.abandon(pending)
            return self._surface(
                CommandOutcome(status=OutcomeStatus.REJECTED, message='Login failed: Cancelled')
            )

        identity = self.auth_provider.get_identity()
        if identity is None:
            self.state_store.abandon(pending)
            return self._surface(
                CommandOutcome(
                    status=OutcomeStatus.TRANSPORT_FAILED,
                    message='Login failed',
                    detail='Provider reported success without an identity',
                )
            )

        return await self._finish_login(pending, identity)

    @Logger.io
    async def logout(self) -> CommandOutcome:
        try:
            await self.auth_provider.logout()
        except Exception as e:
            # Local state is cleared regardless
            Logger.base.warning(f'⚠️ [SESSION] Provider logout failed: {type(e).__name__}: {e}')

        previous = self.state_store.clear()
        if previous.channel is not None:
            await self._close_channel(previous.channel)

        Logger.base.info(f'[SESSION] Session #{previous.generation} ended')
        return self._surface(CommandOutcome.success('Logged out successfully'))

    async def close(self) -> None:
        """Release the channel on shutdown. The provider session is kept for the next start."""
        previous = self.state_store.clear()
        if previous.channel is not None:
            await self._close_channel(previous.channel)

    @Logger.io
    async def reload(self) -> CommandOutcome:
        """User-triggered reload of every collection."""
        context = self.state_store.session
        if not context.is_authenticated:
            return self._surface(CommandOutcome.invalid_input('Please log in first'))

        report = await self.synchronizer.refresh_all(context)
        if report.failed:
            return self._surface(
                CommandOutcome(
                    status=OutcomeStatus.TRANSPORT_FAILED,
                    message='Failed to load some data',
                    value=report,
                    detail=', '.join(sorted(report.failed)),
                )
            )
        return CommandOutcome.success('Data refreshed', value=report)

    async def _finish_login(self, pending: SessionContext, identity: Identity) -> CommandOutcome:
        try:
            channel = await self.channel_factory.create(identity=identity)
        except TransportError as e:
            self.state_store.abandon(pending)
            return self._surface(
                CommandOutcome(
                    status=OutcomeStatus.TRANSPORT_FAILED,
                    message='Login completion failed',
                    detail=f'{type(e).__name__}: {e.detail}',
                )
            )

        context = self.state_store.establish(pending, identity=identity, channel=channel)
        if context is None:
            await self._close_channel(channel)
            return CommandOutcome.superseded('Login')

        Logger.base.info(
            f'✅ [SESSION] Session #{context.generation} authenticated as {identity.principal}'
        )
        await self.synchronizer.refresh_all(context)
        if not self.state_store.is_current(context):
            return CommandOutcome.superseded('Login')
        return self._surface(CommandOutcome.success('Successfully logged in!', value=identity))

    def _not_anonymous_message(self) -> str:
        if self.status is SessionStatus.AUTHENTICATING:
            return 'Login already in progress'
        return 'Already logged in'

    def _surface(self, outcome: CommandOutcome) -> CommandOutcome:
        self.notifier.notify(outcome)
        return outcome

    @staticmethod
    async def _close_channel(channel: ILedgerChannel) -> None:
        try:
            await channel.aclose()
        except Exception as e:
            Logger.base.warning(f'⚠️ [SESSION] Closing channel failed: {type(e).__name__}: {e}')
