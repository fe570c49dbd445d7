"""
In-memory network replica speaking the HTTP interface, mounted through httpx.MockTransport.

Every envelope is checked the way the network checks it: request id, session signature,
delegation signatures and expirations, sender derivation. Replies are Candid-encoded from
named values; update calls are answered through certified ``read_state`` trees.
"""

import time
from typing import Any, Dict, List, Optional, Union

import attrs
import cbor2
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import load_der_public_key
import httpx

from ticketing_client.service.ticketing.domain.value_object.identity import (
    Identity,
    SignedDelegation,
)
from ticketing_client.service.ticketing.driven_adapter.channel import candid
from ticketing_client.service.ticketing.driven_adapter.channel.ledger_candid_codec import (
    LEDGER_METHODS,
)
from ticketing_client.service.ticketing.driven_adapter.channel.principal import (
    principal_from_text,
    self_authenticating_principal,
)
from ticketing_client.service.ticketing.driven_adapter.channel.request_envelope import (
    DELEGATION_DOMAIN,
    REQUEST_DOMAIN,
    SELF_DESCRIBED_CBOR_TAG,
    hash_of_map,
    load_cbor,
    public_key_der,
)


HOUR_NS = 3600 * 1_000_000_000
ROOT_IDENTITY_KEY = Ed25519PrivateKey.from_private_bytes(bytes(range(32)))
SESSION_SEED = bytes(range(32, 64))
NETWORK_ROOT_KEY = bytes.fromhex(
    '308182301d060d2b0601040182dc7c0503010201060c2b0601040182dc7c05030201'
)


def sign_delegation(root: Ed25519PrivateKey, content: Dict[str, Any]) -> bytes:
    return root.sign(DELEGATION_DOMAIN + hash_of_map(content))


def delegation_chain(
    session_public_key: bytes,
    *,
    expiration: Optional[int] = None,
    root: Ed25519PrivateKey = ROOT_IDENTITY_KEY,
) -> Dict[str, Any]:
    """Chain JSON as the identity provider hands it out."""
    if expiration is None:
        expiration = time.time_ns() + 8 * HOUR_NS
    signature = sign_delegation(root, {'pubkey': session_public_key, 'expiration': expiration})
    return {
        'delegations': [
            {
                'delegation': {
                    'pubkey': session_public_key.hex(),
                    'expiration': format(expiration, 'x'),
                },
                'signature': signature.hex(),
            }
        ],
        'publicKey': public_key_der(root).hex(),
    }


def issue_identity(
    *, root: Ed25519PrivateKey = ROOT_IDENTITY_KEY, session_seed: bytes = SESSION_SEED
) -> Identity:
    session_public_key = public_key_der(Ed25519PrivateKey.from_private_bytes(session_seed))
    expiration = time.time_ns() + 8 * HOUR_NS
    root_public_key = public_key_der(root)
    return Identity(
        principal=self_authenticating_principal(root_public_key),
        public_key=root_public_key,
        delegations=(
            SignedDelegation(
                pubkey=session_public_key,
                expiration=expiration,
                signature=sign_delegation(
                    root, {'pubkey': session_public_key, 'expiration': expiration}
                ),
            ),
        ),
        session_key=session_seed,
    )


@attrs.define(frozen=True)
class Rejection:
    code: int
    message: str


@attrs.define(frozen=True)
class ReceivedRequest:
    endpoint: str
    content: Dict[str, Any]
    args: List[Any]


def cbor_response(body: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=cbor2.dumps(cbor2.CBORTag(SELF_DESCRIBED_CBOR_TAG, body)),
        headers={'content-type': 'application/cbor'},
    )


def labeled(label: bytes, subtree: list) -> list:
    return [2, label, subtree]


def leaf(value: bytes) -> list:
    return [3, value]


def fork(left: list, right: list) -> list:
    return [1, left, right]


Reply = Union[Any, Rejection, bytes, httpx.Response]


class ReplicaStub:
    """
    ``replies`` maps a method name to its named reply value, a ``Rejection``, raw Candid
    bytes or a ready ``httpx.Response``. ``call_statuses`` lists the statuses an update
    call reports before its final one.
    """

    def __init__(
        self,
        replies: Optional[Dict[str, Reply]] = None,
        *,
        root_key: Optional[bytes] = NETWORK_ROOT_KEY,
    ) -> None:
        self.replies: Dict[str, Reply] = dict(replies or {})
        self.root_key = root_key
        self.call_statuses: Dict[str, List[str]] = {}
        self.paths: List[str] = []
        self.bodies: List[bytes] = []
        self.received: List[ReceivedRequest] = []
        self._calls: Dict[bytes, str] = {}

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        if request.url.path == '/api/v2/status':
            status = {'impl_version': '0.9'}
            if self.root_key is not None:
                status['root_key'] = self.root_key
            return cbor_response(status)

        self.bodies.append(request.content)
        envelope = load_cbor(request.content)
        if request.headers['content-type'] != 'application/cbor' or not self._authentic(envelope):
            return httpx.Response(403, text='Invalid signature')

        content = envelope['content']
        endpoint = request.url.path.rsplit('/', 1)[-1]
        if endpoint == 'read_state':
            self.received.append(ReceivedRequest(endpoint, content, []))
            return self._read_state(content)

        method = content['method_name']
        signature = LEDGER_METHODS[method]
        args = candid.decode_as(signature.arg_types, content['arg'])
        self.received.append(ReceivedRequest(endpoint, content, args))

        reply = self.replies[method]
        if isinstance(reply, httpx.Response):
            return reply
        if endpoint == 'call':
            self._calls[hash_of_map(content)] = method
            return httpx.Response(202)
        if isinstance(reply, Rejection):
            return cbor_response(
                {'status': 'rejected', 'reject_code': reply.code, 'reject_message': reply.message}
            )
        return cbor_response({'status': 'replied', 'reply': {'arg': self._encode(method, reply)}})

    def _read_state(self, content: Dict[str, Any]) -> httpx.Response:
        ((_, request_id),) = content['paths']
        method = self._calls[request_id]
        pending = self.call_statuses.get(method) or []
        if pending:
            node = labeled(b'status', leaf(pending.pop(0).encode()))
        else:
            reply = self.replies[method]
            if isinstance(reply, Rejection):
                node = fork(
                    fork(
                        labeled(b'reject_code', leaf(candid.encode_leb128(reply.code))),
                        labeled(b'reject_message', leaf(reply.message.encode())),
                    ),
                    labeled(b'status', leaf(b'rejected')),
                )
            else:
                node = fork(
                    labeled(b'reply', leaf(self._encode(method, reply))),
                    labeled(b'status', leaf(b'replied')),
                )
        tree = fork(
            labeled(b'request_status', labeled(request_id, node)),
            labeled(b'time', leaf(candid.encode_leb128(time.time_ns()))),
        )
        certificate = cbor2.dumps({'tree': tree, 'signature': bytes(48)})
        return cbor_response({'certificate': certificate})

    @staticmethod
    def _encode(method: str, reply: Any) -> bytes:
        if isinstance(reply, bytes):
            return reply
        return candid.encode([LEDGER_METHODS[method].return_type], [reply])

    @staticmethod
    def _authentic(envelope: Dict[str, Any]) -> bool:
        now = time.time_ns()
        content = envelope['content']
        signer = envelope['sender_pubkey']
        try:
            for link in envelope.get('sender_delegation', []):
                delegation = link['delegation']
                load_der_public_key(signer).verify(
                    link['signature'], DELEGATION_DOMAIN + hash_of_map(delegation)
                )
                if delegation['expiration'] <= now:
                    return False
                signer = delegation['pubkey']
            load_der_public_key(signer).verify(
                envelope['sender_sig'], REQUEST_DOMAIN + hash_of_map(content)
            )
        except InvalidSignature:
            return False

        sender = principal_from_text(self_authenticating_principal(envelope['sender_pubkey']))
        return content['sender'] == sender and content['ingress_expiry'] > now
