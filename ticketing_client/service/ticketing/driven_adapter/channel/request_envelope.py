"""
Request envelopes of the network's HTTP interface

Every request body is a self-describing CBOR map::

    {content, sender_pubkey, sender_sig, sender_delegation}

``content`` is signed through its request id, the representation-independent hash of the
content map. Replies to ``read_state`` carry a certificate whose hash tree is searched with
``lookup_path``.
"""

import hashlib
import secrets
from typing import Any, Dict, List, Mapping, Optional, Sequence

import cbor2
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from ticketing_client.platform.exception.exceptions import SerializationError
from ticketing_client.service.ticketing.domain.value_object.identity import (
    Identity,
    SignedDelegation,
)
from ticketing_client.service.ticketing.driven_adapter.channel.candid import encode_leb128


SELF_DESCRIBED_CBOR_TAG = 55799
REQUEST_DOMAIN = b'\x0aic-request'
DELEGATION_DOMAIN = b'\x1aic-request-auth-delegation'

# Hash tree node tags
EMPTY, FORK, LABELED, LEAF, PRUNED = range(5)


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def hash_of_value(value: Any) -> bytes:
    if isinstance(value, bytes):
        return _sha256(value)
    if isinstance(value, str):
        return _sha256(value.encode('utf-8'))
    if isinstance(value, int) and not isinstance(value, bool):
        return _sha256(encode_leb128(value))
    if isinstance(value, (list, tuple)):
        return _sha256(b''.join(hash_of_value(item) for item in value))
    if isinstance(value, Mapping):
        return hash_of_map(value)
    raise SerializationError('Cannot hash request field', detail=repr(value))


def hash_of_map(fields: Mapping[str, Any]) -> bytes:
    """Representation-independent hash. None-valued fields are absent."""
    pairs = sorted(
        _sha256(key.encode('utf-8')) + hash_of_value(value)
        for key, value in fields.items()
        if value is not None
    )
    return _sha256(b''.join(pairs))


def public_key_der(private_key: Ed25519PrivateKey) -> bytes:
    return private_key.public_key().public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)


def delegation_content(delegation: SignedDelegation) -> Dict[str, Any]:
    content: Dict[str, Any] = {'pubkey': delegation.pubkey, 'expiration': delegation.expiration}
    if delegation.targets is not None:
        content['targets'] = list(delegation.targets)
    return content


# ---- request content ----


def query_content(
    *, canister_id: bytes, method_name: str, arg: bytes, sender: bytes, ingress_expiry: int
) -> Dict[str, Any]:
    return {
        'request_type': 'query',
        'canister_id': canister_id,
        'method_name': method_name,
        'arg': arg,
        'sender': sender,
        'ingress_expiry': ingress_expiry,
    }


def call_content(
    *, canister_id: bytes, method_name: str, arg: bytes, sender: bytes, ingress_expiry: int
) -> Dict[str, Any]:
    content = query_content(
        canister_id=canister_id,
        method_name=method_name,
        arg=arg,
        sender=sender,
        ingress_expiry=ingress_expiry,
    )
    content['request_type'] = 'call'
    content['nonce'] = secrets.token_bytes(16)
    return content


def read_state_content(
    *, paths: List[List[bytes]], sender: bytes, ingress_expiry: int
) -> Dict[str, Any]:
    return {
        'request_type': 'read_state',
        'paths': paths,
        'sender': sender,
        'ingress_expiry': ingress_expiry,
    }


def sign_envelope(identity: Identity, content: Dict[str, Any]) -> bytes:
    """CBOR body carrying ``content`` signed by the identity's session key."""
    session_key = Ed25519PrivateKey.from_private_bytes(identity.session_key)
    request_id = hash_of_map(content)
    envelope: Dict[str, Any] = {
        'content': content,
        'sender_pubkey': identity.public_key or public_key_der(session_key),
        'sender_sig': session_key.sign(REQUEST_DOMAIN + request_id),
    }
    if identity.delegations:
        envelope['sender_delegation'] = [
            {'delegation': delegation_content(delegation), 'signature': delegation.signature}
            for delegation in identity.delegations
        ]
    return cbor2.dumps(cbor2.CBORTag(SELF_DESCRIBED_CBOR_TAG, envelope))


# ---- replies ----


def load_cbor(data: bytes) -> Any:
    try:
        value = cbor2.loads(data)
    except cbor2.CBORDecodeError as e:
        raise SerializationError('Malformed CBOR reply', detail=str(e)) from e
    if isinstance(value, cbor2.CBORTag) and value.tag == SELF_DESCRIBED_CBOR_TAG:
        value = value.value
    return value


def lookup_path(tree: Any, path: Sequence[bytes]) -> Optional[bytes]:
    """Leaf at ``path`` in a certificate hash tree, None when absent or pruned."""
    try:
        if not path:
            return tree[1] if tree[0] == LEAF else None
        subtree = _find_label(tree, path[0])
    except (IndexError, KeyError, TypeError) as e:
        raise SerializationError('Malformed hash tree', detail=str(e)) from e
    return None if subtree is None else lookup_path(subtree, path[1:])


def _find_label(tree: Any, label: bytes) -> Any:
    tag = tree[0]
    if tag == FORK:
        found = _find_label(tree[1], label)
        return found if found is not None else _find_label(tree[2], label)
    if tag == LABELED:
        return tree[2] if tree[1] == label else None
    if tag in (EMPTY, LEAF, PRUNED):
        return None
    raise SerializationError('Malformed hash tree', detail=f'node tag {tag!r}')
