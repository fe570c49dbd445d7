"""
Unit tests for principals, request ids and signed envelopes

Test Focus:
1. Principal text form and checksum
2. Request id matches the network's representation-independent hash
3. Envelopes carry a verifiable session signature and the delegation chain
4. Hash tree lookup
"""

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import load_der_public_key
import pytest

from replica_stub import SESSION_SEED, fork, issue_identity, labeled, leaf
from ticketing_client.platform.exception.exceptions import SerializationError
from ticketing_client.service.ticketing.domain.value_object.identity import Identity
from ticketing_client.service.ticketing.driven_adapter.channel.principal import (
    principal_from_text,
    principal_to_text,
    self_authenticating_principal,
)
from ticketing_client.service.ticketing.driven_adapter.channel.request_envelope import (
    REQUEST_DOMAIN,
    call_content,
    hash_of_map,
    load_cbor,
    lookup_path,
    public_key_der,
    query_content,
    sign_envelope,
)


@pytest.mark.unit
class TestPrincipal:
    @pytest.mark.parametrize(
        'raw,text',
        [
            (b'', 'aaaaa-aa'),
            (b'\x04', '2vxsx-fae'),
            (bytes.fromhex('00000000000000010101'), 'rrkah-fqaaa-aaaaa-aaaaq-cai'),
        ],
    )
    def test_text_form(self, raw, text):
        assert principal_to_text(raw) == text
        assert principal_from_text(text) == raw

    @pytest.mark.parametrize(
        'text', ['rrkah-fqaaa-aaaaa-aaaaq-caa', 'AAAAA-AA', 'aaaaaaa', 'a1!', 'aa']
    )
    def test_rejects_bad_text(self, text):
        with pytest.raises(SerializationError):
            principal_from_text(text)

    def test_self_authenticating(self):
        principal = self_authenticating_principal(b'\x30\x2a' + bytes(42))
        raw = principal_from_text(principal)

        assert len(raw) == 29
        assert raw.endswith(b'\x02')


@pytest.mark.unit
class TestRequestId:
    def test_interface_example(self):
        content = {
            'request_type': 'call',
            'sender': b'\x04',
            'ingress_expiry': 1685570400000000000,
            'canister_id': bytes.fromhex('00000000000004D2'),
            'method_name': 'hello',
            'arg': b'DIDL\x00\xfd*',
        }

        assert hash_of_map(content).hex() == (
            '1d1091364d6bb8a6c16b203ee75467d59ead468f523eb058880ae8ec80e2b101'
        )

    def test_field_order_does_not_matter(self):
        a = {'x': 1, 'y': [b'a', b'b'], 'z': {'k': 'v'}}
        b = {'z': {'k': 'v'}, 'y': [b'a', b'b'], 'x': 1}

        assert hash_of_map(a) == hash_of_map(b)

    def test_call_content_carries_fresh_nonce(self):
        fields = dict(
            canister_id=b'\x01', method_name='m', arg=b'', sender=b'\x04', ingress_expiry=1
        )

        first, second = call_content(**fields), call_content(**fields)

        assert first['nonce'] != second['nonce']
        assert hash_of_map(first) != hash_of_map(second)

    def test_unhashable_field(self):
        with pytest.raises(SerializationError):
            hash_of_map({'x': 1.5})


@pytest.mark.unit
class TestEnvelope:
    def content(self, identity):
        return query_content(
            canister_id=b'\x01',
            method_name='get_all_events',
            arg=b'DIDL\x00\x00',
            sender=principal_from_text(identity.principal),
            ingress_expiry=1,
        )

    def test_delegated_identity(self):
        # Given
        identity = issue_identity()
        content = self.content(identity)

        # When
        body = sign_envelope(identity, content)

        # Then: self-described CBOR signed by the session key, chain attached
        envelope = load_cbor(body)
        assert body[:3] == b'\xd9\xd9\xf7'
        assert envelope['content'] == content
        assert envelope['sender_pubkey'] == identity.public_key
        (link,) = envelope['sender_delegation']
        assert link['delegation']['pubkey'] == identity.delegations[0].pubkey
        session_public_key = load_der_public_key(link['delegation']['pubkey'])
        session_public_key.verify(envelope['sender_sig'], REQUEST_DOMAIN + hash_of_map(content))

    def test_plain_session_key_identity(self):
        session_key = Ed25519PrivateKey.from_private_bytes(SESSION_SEED)
        der = public_key_der(session_key)
        identity = Identity(
            principal=self_authenticating_principal(der), session_key=SESSION_SEED
        )

        body = sign_envelope(identity, self.content(identity))

        envelope = load_cbor(body)
        assert envelope['sender_pubkey'] == der
        assert 'sender_delegation' not in envelope


@pytest.mark.unit
class TestHashTree:
    TREE = fork(
        labeled(
            b'request_status',
            labeled(
                b'id',
                fork(
                    labeled(b'reply', leaf(b'DIDL')),
                    labeled(b'status', leaf(b'replied')),
                ),
            ),
        ),
        labeled(b'time', [4, bytes(32)]),
    )

    def test_lookup(self):
        assert lookup_path(self.TREE, [b'request_status', b'id', b'status']) == b'replied'
        assert lookup_path(self.TREE, [b'request_status', b'id', b'reply']) == b'DIDL'

    def test_absent_and_pruned(self):
        assert lookup_path(self.TREE, [b'request_status', b'other', b'status']) is None
        assert lookup_path(self.TREE, [b'time']) is None
        assert lookup_path([0], [b'anything']) is None

    def test_malformed(self):
        with pytest.raises(SerializationError):
            lookup_path([9, b'x'], [b'request_status'])
