"""
HTTP Ledger Channel

Talks to the ledger canister through the network's HTTP interface. Bodies are signed CBOR
envelopes (see ``request_envelope``) whose ``arg`` is the Candid-encoded argument list:

    POST {host}/api/v2/canister/{canister_id}/query        read-only calls, answered inline
    POST {host}/api/v2/canister/{canister_id}/call         state-changing calls, 202 Accepted
    POST {host}/api/v2/canister/{canister_id}/read_state   request status of an accepted call
    GET  {host}/api/v2/status                              network root key

An accepted call is polled through ``read_state`` until its status is ``replied`` or
``rejected``. When the ledger stops reporting a status before either, the outcome is unknown.
"""

import time
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

import anyio
import httpx

from ticketing_client.platform.exception.exceptions import (
    ChannelConstructionError,
    NetworkError,
    ProviderRejectionError,
    SerializationError,
)
from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.interface.i_ledger_channel import ILedgerChannel
from ticketing_client.service.ticketing.domain.entity.event_entity import Event
from ticketing_client.service.ticketing.domain.entity.event_stats_entity import EventStats
from ticketing_client.service.ticketing.domain.entity.purchase_entity import Purchase
from ticketing_client.service.ticketing.domain.entity.ticket_entity import Ticket
from ticketing_client.service.ticketing.domain.entity.user_profile_entity import UserProfile
from ticketing_client.service.ticketing.domain.value_object.identity import Identity
from ticketing_client.service.ticketing.domain.value_object.result import Result
from ticketing_client.service.ticketing.driven_adapter.channel.candid import decode_leb128
from ticketing_client.service.ticketing.driven_adapter.channel.ledger_candid_codec import (
    decode_event,
    decode_event_id,
    decode_event_stats,
    decode_purchase,
    decode_reply,
    decode_result,
    decode_ticket,
    decode_unit,
    decode_user_profile,
    decode_vec,
    encode_args,
)
from ticketing_client.service.ticketing.driven_adapter.channel.principal import (
    principal_from_text,
)
from ticketing_client.service.ticketing.driven_adapter.channel.request_envelope import (
    call_content,
    hash_of_map,
    load_cbor,
    lookup_path,
    query_content,
    read_state_content,
    sign_envelope,
)


T = TypeVar('T')

STATUS_PATH = '/api/v2/status'
CBOR_CONTENT_TYPE = 'application/cbor'
NANOS_PER_SECOND = 1_000_000_000


class HttpLedgerChannel(ILedgerChannel):
    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        canister_id: str,
        identity: Identity,
        requires_root_key: bool,
        ingress_expiry_seconds: int = 240,
        poll_interval_seconds: float = 0.5,
        update_timeout_seconds: float = 300.0,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        self._client = client
        self._canister_id = canister_id
        self._canister_bytes = principal_from_text(canister_id)
        self._identity = identity
        self._sender = principal_from_text(identity.principal)
        self._requires_root_key = requires_root_key
        self._ingress_expiry_ns = ingress_expiry_seconds * NANOS_PER_SECOND
        self._poll_interval = poll_interval_seconds
        self._update_timeout = update_timeout_seconds
        self._clock = clock
        self._root_key: Optional[bytes] = None

    @property
    def principal(self) -> str:
        return self._identity.principal

    @property
    def root_key(self) -> Optional[bytes]:
        return self._root_key

    @Logger.io
    async def fetch_root_key(self) -> bytes:
        """Trust the root key the network reports. Development networks only."""
        try:
            response = await self._client.get(STATUS_PATH)
            response.raise_for_status()
            status = load_cbor(response.content)
            root_key = status['root_key']
        except httpx.HTTPError as e:
            raise ChannelConstructionError('Could not fetch root key', detail=str(e)) from e
        except (SerializationError, KeyError, TypeError) as e:
            raise ChannelConstructionError('Malformed status reply', detail=str(e)) from e

        if not isinstance(root_key, bytes) or not root_key:
            raise ChannelConstructionError('Network reported an empty root key')
        self._root_key = root_key
        return root_key

    async def list_active_events(self) -> List[Event]:
        return await self._query('get_active_events', [], lambda raw: decode_vec(raw, decode_event))

    async def list_all_events(self) -> List[Event]:
        return await self._query('get_all_events', [], lambda raw: decode_vec(raw, decode_event))

    async def get_event(self, *, event_id: int) -> Result[Event]:
        return await self._query(
            'get_event', [event_id], lambda raw: decode_result(raw, decode_event)
        )

    async def create_event(
        self,
        *,
        name: str,
        description: str,
        venue: str,
        date: int,
        total_tickets: int,
        price: int,
        max_tickets_per_user: int,
        sale_start_time: int,
        sale_end_time: int,
    ) -> Result[int]:
        args = [
            name,
            description,
            venue,
            date,
            total_tickets,
            price,
            max_tickets_per_user,
            sale_start_time,
            sale_end_time,
        ]
        return await self._update(
            'create_event', args, lambda raw: decode_result(raw, decode_event_id)
        )

    async def purchase_tickets(self, *, event_id: int, quantity: int) -> Result[Purchase]:
        return await self._update(
            'purchase_tickets',
            [event_id, quantity],
            lambda raw: decode_result(raw, decode_purchase),
        )

    async def list_user_tickets(self, *, principal: str) -> List[Ticket]:
        return await self._query(
            'get_user_tickets', [principal], lambda raw: decode_vec(raw, decode_ticket)
        )

    async def list_user_purchases(self, *, principal: str) -> List[Purchase]:
        return await self._query(
            'get_user_purchases', [principal], lambda raw: decode_vec(raw, decode_purchase)
        )

    async def get_user_profile(self, *, principal: str) -> UserProfile:
        return await self._query('get_user_profile', [principal], decode_user_profile)

    async def verify_ticket(self, *, ticket_id: int, verification_code: str) -> Result[Ticket]:
        return await self._query(
            'verify_ticket',
            [ticket_id, verification_code],
            lambda raw: decode_result(raw, decode_ticket),
        )

    async def use_ticket(self, *, ticket_id: int, verification_code: str) -> Result[None]:
        return await self._update(
            'use_ticket',
            [ticket_id, verification_code],
            lambda raw: decode_result(raw, decode_unit),
        )

    async def get_event_statistics(self, *, event_id: int) -> Result[EventStats]:
        return await self._query(
            'get_event_statistics', [event_id], lambda raw: decode_result(raw, decode_event_stats)
        )

    async def deactivate_event(self, *, event_id: int) -> Result[None]:
        return await self._update(
            'deactivate_event', [event_id], lambda raw: decode_result(raw, decode_unit)
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _query(self, method: str, args: List[Any], decode: Callable[[Any], T]) -> T:
        self._require_trusted_network()
        content = query_content(
            canister_id=self._canister_bytes,
            method_name=method,
            arg=encode_args(method, args),
            sender=self._sender,
            ingress_expiry=self._ingress_expiry(),
        )
        response = await self._post(method, 'query', content)
        reply = self._parse_reply(method, response)

        status = reply.get('status')
        if status == 'rejected':
            raise ProviderRejectionError(
                f'{method} was rejected by the network',
                reject_code=reply.get('reject_code'),
                detail=str(reply.get('reject_message', '')),
            )
        arg = reply['reply'].get('arg') if isinstance(reply.get('reply'), dict) else None
        if status != 'replied' or not isinstance(arg, bytes):
            raise SerializationError(f'{method} returned no reply', detail=repr(reply)[:200])
        return decode(decode_reply(method, arg))

    async def _update(self, method: str, args: List[Any], decode: Callable[[Any], T]) -> T:
        self._require_trusted_network()
        content = call_content(
            canister_id=self._canister_bytes,
            method_name=method,
            arg=encode_args(method, args),
            sender=self._sender,
            ingress_expiry=self._ingress_expiry(),
        )
        request_id = hash_of_map(content)
        response = await self._post(method, 'call', content)
        if response.status_code != httpx.codes.ACCEPTED:
            reply = self._parse_reply(method, response) if response.content else {}
            raise ProviderRejectionError(
                f'{method} was not accepted by the network',
                reject_code=reply.get('reject_code'),
                detail=str(reply.get('reject_message', f'HTTP {response.status_code}')),
            )

        reply_arg = await self._poll_request_status(method, request_id)
        return decode(decode_reply(method, reply_arg))

    async def _poll_request_status(self, method: str, request_id: bytes) -> bytes:
        deadline = anyio.current_time() + self._update_timeout
        while True:
            status, tree = await self._read_request_status(method, request_id)
            if status == 'replied':
                reply = lookup_path(tree, [b'request_status', request_id, b'reply'])
                if reply is None:
                    raise SerializationError(f'{method} replied without a reply')
                return reply
            if status == 'rejected':
                code = lookup_path(tree, [b'request_status', request_id, b'reject_code'])
                message = lookup_path(tree, [b'request_status', request_id, b'reject_message'])
                raise ProviderRejectionError(
                    f'{method} was rejected by the network',
                    reject_code=decode_leb128(code) if code is not None else None,
                    detail=(message or b'').decode('utf-8', errors='replace'),
                )
            if status == 'done':
                raise NetworkError(
                    f'Outcome of {method} is unknown', detail='reply is no longer available'
                )
            if anyio.current_time() >= deadline:
                raise NetworkError(
                    f'Outcome of {method} is unknown',
                    detail=f'still {status or "unknown"} after {self._update_timeout}s',
                )
            Logger.base.debug(f'⏳ [CHANNEL] {method} is {status or "unknown"}')
            await anyio.sleep(self._poll_interval)

    async def _read_request_status(
        self, method: str, request_id: bytes
    ) -> Tuple[Optional[str], Any]:
        content = read_state_content(
            paths=[[b'request_status', request_id]],
            sender=self._sender,
            ingress_expiry=self._ingress_expiry(),
        )
        response = await self._post(method, 'read_state', content)
        reply = self._parse_reply(method, response)
        if response.is_error or not isinstance(reply.get('certificate'), bytes):
            raise ProviderRejectionError(
                f'Status of {method} could not be read',
                detail=f'HTTP {response.status_code}',
            )

        # TODO: verify the certificate's BLS signature against self._root_key (or the
        # mainnet key) once a BLS12-381 G1 verifier with the network's DST is packaged.
        certificate = load_cbor(reply['certificate'])
        if not isinstance(certificate, dict) or 'tree' not in certificate:
            raise SerializationError(f'Malformed certificate for {method}')
        status = lookup_path(certificate['tree'], [b'request_status', request_id, b'status'])
        return (status.decode('utf-8') if status is not None else None), certificate['tree']

    async def _post(self, method: str, endpoint: str, content: Dict[str, Any]) -> httpx.Response:
        body = sign_envelope(self._identity, content)
        try:
            return await self._client.post(
                f'/api/v2/canister/{self._canister_id}/{endpoint}',
                content=body,
                headers={'Content-Type': CBOR_CONTENT_TYPE},
            )
        except httpx.HTTPError as e:
            raise NetworkError(f'{method} did not reach the ledger', detail=str(e)) from e

    @staticmethod
    def _parse_reply(method: str, response: httpx.Response) -> Dict[str, Any]:
        if response.is_error and not response.headers.get('content-type', '').startswith(
            CBOR_CONTENT_TYPE
        ):
            raise ProviderRejectionError(
                f'{method} failed with HTTP {response.status_code}', detail=response.text[:200]
            )
        reply = load_cbor(response.content)
        if not isinstance(reply, dict):
            raise SerializationError(f'{method} returned no reply', detail=repr(reply)[:200])
        return reply

    def _require_trusted_network(self) -> None:
        if self._requires_root_key and self._root_key is None:
            raise ChannelConstructionError(
                'Root key not trusted yet', detail='fetch_root_key() must run before any call'
            )

    def _ingress_expiry(self) -> int:
        return self._clock() + self._ingress_expiry_ns
