"""
Unit tests for the Candid binary codec

Test Focus:
1. Known encodings of primitive and composite values
2. Field ids and type table sharing
3. Decoding restores names and honours optional fields
4. Malformed messages and out-of-range values are serialization errors
"""

import pytest

from ticketing_client.platform.exception.exceptions import SerializationError
from ticketing_client.service.ticketing.driven_adapter.channel import candid


@pytest.mark.unit
class TestLeb128:
    @pytest.mark.parametrize(
        'value,encoded',
        [(0, b'\x00'), (127, b'\x7f'), (128, b'\x80\x01'), (624485, b'\xe5\x8e\x26')],
    )
    def test_unsigned(self, value, encoded):
        assert candid.encode_leb128(value) == encoded
        assert candid.decode_leb128(encoded) == value

    @pytest.mark.parametrize(
        'value,encoded', [(0, b'\x00'), (-1, b'\x7f'), (-24, b'\x68'), (-123456, b'\xc0\xbb\x78')]
    )
    def test_signed(self, value, encoded):
        assert candid.encode_sleb128(value) == encoded

    def test_negative_nat(self):
        with pytest.raises(SerializationError):
            candid.encode_leb128(-1)


@pytest.mark.unit
class TestFieldIds:
    @pytest.mark.parametrize(
        'name,field_id', [('a', 97), ('ab', 21729), ('id', 23515), ('name', 1224700491)]
    )
    def test_idl_hash(self, name, field_id):
        assert candid.idl_hash(name) == field_id


@pytest.mark.unit
class TestEncode:
    def test_text(self):
        assert candid.encode([candid.Text], ['hello']) == b'DIDL\x00\x01\x71\x05hello'

    def test_bool_and_null(self):
        encoded = candid.encode([candid.Bool, candid.Null], [True, None])

        assert encoded == b'DIDL\x00\x02\x7e\x7f\x01'

    def test_principal(self):
        encoded = candid.encode([candid.Principal], ['aaaaa-aa'])

        assert encoded == b'DIDL\x00\x01\x68\x01\x00'

    def test_opt(self):
        encoded = candid.encode([candid.Opt(candid.Nat8)] * 2, [None, 7])

        assert encoded == b'DIDL\x01\x6e\x7b\x02\x00\x00\x00\x01\x07'

    def test_record_fields_in_id_order(self):
        record = candid.Record({'b': candid.Nat8, 'a': candid.Bool})

        encoded = candid.encode([record], [{'a': True, 'b': 5}])

        assert encoded == b'DIDL\x01\x6c\x02\x61\x7e\x62\x7b\x01\x00\x01\x05'

    def test_vec_shares_one_table_entry(self):
        vec = candid.Vec(candid.Nat64)

        encoded = candid.encode([vec, vec], [[1], []])

        assert encoded.startswith(b'DIDL\x01\x6d\x78\x02\x00\x00')

    def test_variant(self):
        variant = candid.Variant({'Ok': candid.Nat8, 'Err': candid.Text})

        encoded = candid.encode([variant], [{'Ok': 3}])

        assert candid.decode_as([variant], encoded) == [{'Ok': 3}]
        assert encoded.endswith(b'\x00\x03')

    @pytest.mark.parametrize(
        'candid_type,value',
        [
            (candid.Nat32, 2**32),
            (candid.Nat64, -1),
            (candid.Nat8, True),
            (candid.Text, 5),
            (candid.Bool, 1),
            (candid.Null, 0),
            (candid.Vec(candid.Nat8), 'abc'),
            (candid.Variant({'Ok': candid.Null}), {'Maybe': None}),
            (candid.Record({'a': candid.Nat8}), {}),
        ],
    )
    def test_rejects_values_outside_the_type(self, candid_type, value):
        with pytest.raises(SerializationError):
            candid.encode([candid_type], [value])

    def test_argument_count_mismatch(self):
        with pytest.raises(SerializationError, match='Argument count'):
            candid.encode([candid.Nat8], [])


@pytest.mark.unit
class TestDecode:
    def test_raw_record_is_keyed_by_field_id(self):
        encoded = b'DIDL\x01\x6c\x02\x61\x7e\x62\x7b\x01\x00\x01\x05'

        assert candid.decode(encoded) == [{97: True, 98: 5}]

    def test_tuple(self):
        stats = candid.TupleOf([candid.Nat32, candid.Nat32, candid.Nat64])
        encoded = candid.encode([stats], [[3, 97, 300]])

        assert candid.decode_as([stats], encoded) == [[3, 97, 300]]

    def test_missing_opt_field_is_none(self):
        wire = candid.encode([candid.Record({'a': candid.Nat8})], [{'a': 1}])
        expected = candid.Record({'a': candid.Nat8, 'b': candid.Opt(candid.Text)})

        assert candid.decode_as([expected], wire) == [{'a': 1, 'b': None}]

    def test_extra_fields_are_ignored(self):
        wire = candid.encode(
            [candid.Record({'a': candid.Nat8, 'z': candid.Text})], [{'a': 1, 'z': 'extra'}]
        )

        assert candid.decode_as([candid.Record({'a': candid.Nat8})], wire) == [{'a': 1}]

    def test_principal_becomes_text(self):
        assert candid.decode_as([candid.Principal], b'DIDL\x00\x01\x68\x01\x01\x04') == [
            '2vxsx-fae'
        ]

    def test_blob(self):
        assert candid.decode(b'DIDL\x01\x6d\x7b\x01\x00\x02\xca\xfe') == [b'\xca\xfe']

    @pytest.mark.parametrize(
        'data',
        [
            b'DIDX\x00\x00',
            b'DIDL\x00\x01\x71\x05hel',
            b'DIDL\x00\x01\x7e\x02',
            b'DIDL\x00\x01\x71\x01x\x00',
            b'DIDL\x00\x01\x05',
            b'DIDL\x01\x6a\x00\x00\x00\x01\x00',
            b'DIDL\x00\x01\x68\x00',
            b'DIDL\x00\x01\x71\x02\xff\xfe',
        ],
        ids=['magic', 'truncated', 'bool', 'trailing', 'dangling', 'func', 'opaque', 'utf8'],
    )
    def test_malformed(self, data):
        with pytest.raises(SerializationError):
            candid.decode(data)

    def test_type_mismatch(self):
        with pytest.raises(SerializationError, match='type mismatch'):
            candid.decode_as([candid.Nat64], b'DIDL\x00\x01\x71\x01x')

    def test_too_few_values(self):
        with pytest.raises(SerializationError, match='Too few'):
            candid.decode_as([candid.Nat64], b'DIDL\x00\x00')
