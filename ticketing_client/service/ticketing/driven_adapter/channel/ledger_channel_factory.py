import httpx

from ticketing_client.platform.config.core_setting import Settings
from ticketing_client.platform.exception.exceptions import ChannelConstructionError
from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.interface.i_ledger_channel_factory import (
    ILedgerChannelFactory,
)
from ticketing_client.service.ticketing.domain.value_object.identity import Identity
from ticketing_client.service.ticketing.driven_adapter.channel.http_ledger_channel import (
    HttpLedgerChannel,
)


class LedgerChannelFactory(ILedgerChannelFactory):
    """
    Builds one HttpLedgerChannel per identity.

    Outside production the network root key is fetched and trusted before the channel is
    handed out; a channel that cannot trust the network is never returned.
    """

    def __init__(self, *, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    @Logger.io
    async def create(self, *, identity: Identity) -> HttpLedgerChannel:
        client = httpx.AsyncClient(
            base_url=self.settings.LEDGER_BASE_URL,
            timeout=self.settings.REQUEST_TIMEOUT_SECONDS,
            headers={'Accept': 'application/cbor'},
            transport=self._transport,
        )
        try:
            channel = HttpLedgerChannel(
                client=client,
                canister_id=self.settings.CANISTER_ID,
                identity=identity,
                requires_root_key=not self.settings.IS_PRODUCTION,
                ingress_expiry_seconds=self.settings.INGRESS_EXPIRY_SECONDS,
                poll_interval_seconds=self.settings.UPDATE_POLL_INTERVAL_SECONDS,
                update_timeout_seconds=self.settings.UPDATE_TIMEOUT_SECONDS,
            )
            if not self.settings.IS_PRODUCTION:
                await channel.fetch_root_key()
        except ChannelConstructionError:
            await client.aclose()
            raise
        except Exception as e:
            await client.aclose()
            raise ChannelConstructionError(
                'Channel construction failed', detail=f'{type(e).__name__}: {e}'
            ) from e

        if not self.settings.IS_PRODUCTION:
            Logger.base.info(
                f'🔑 [CHANNEL] Trusted root key of {self.settings.DEPLOY_TARGET} network '
                f'at {self.settings.LEDGER_BASE_URL}'
            )
        return channel
