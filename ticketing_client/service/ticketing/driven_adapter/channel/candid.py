"""
Candid binary codec

Covers the types the ledger interface is declared with. Values are handled in their named
form on both sides:

- records are dicts keyed by field name, tuples are lists
- variants are single-key dicts (``{'Ok': ...}``, ``{'Err': {'SaleEnded': None}}``)
- principals are their textual form, ``null`` is None

Decoding runs in two steps. ``decode`` reads any well-formed message against the type table
it carries (records keyed by field id, variants as ``(field_id, value)``). ``to_named`` then
checks that raw value against the expected type and restores field names. Extra record fields
are ignored, as Candid subtyping allows.
"""

from enum import IntEnum
import struct
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Sequence, Tuple, Union

import attrs

from ticketing_client.platform.exception.exceptions import SerializationError
from ticketing_client.service.ticketing.driven_adapter.channel.principal import (
    principal_from_text,
    principal_to_text,
)


MAGIC = b'DIDL'


class Opcode(IntEnum):
    NULL = -1
    BOOL = -2
    NAT = -3
    INT = -4
    NAT8 = -5
    NAT16 = -6
    NAT32 = -7
    NAT64 = -8
    INT8 = -9
    INT16 = -10
    INT32 = -11
    INT64 = -12
    FLOAT32 = -13
    FLOAT64 = -14
    TEXT = -15
    RESERVED = -16
    EMPTY = -17
    OPT = -18
    VEC = -19
    RECORD = -20
    VARIANT = -21
    PRINCIPAL = -24


_FIXED_WIDTH = {
    Opcode.NAT8: (1, False),
    Opcode.NAT16: (2, False),
    Opcode.NAT32: (4, False),
    Opcode.NAT64: (8, False),
    Opcode.INT8: (1, True),
    Opcode.INT16: (2, True),
    Opcode.INT32: (4, True),
    Opcode.INT64: (8, True),
}


def idl_hash(name: str) -> int:
    """Field id of a record field or variant tag."""
    h = 0
    for byte in name.encode('utf-8'):
        h = (h * 223 + byte) % 2**32
    return h


def encode_leb128(value: int) -> bytes:
    if value < 0:
        raise SerializationError('Cannot encode negative nat', detail=str(value))
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def encode_sleb128(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        done = (value == 0 and not byte & 0x40) or (value == -1 and byte & 0x40)
        out.append(byte if done else byte | 0x80)
        if done:
            return bytes(out)


def _mismatch(expected: str, raw: Any) -> SerializationError:
    return SerializationError('Candid type mismatch', detail=f'expected {expected}, got {raw!r}')


# ---- types ----


class _TypeTable:
    def __init__(self) -> None:
        self._entries: List[bytes] = []
        self._index: Dict['CandidType', int] = {}

    def register(self, candid_type: 'CandidType', build: Callable[[], bytes]) -> int:
        if candid_type in self._index:
            return self._index[candid_type]
        index = len(self._entries)
        self._index[candid_type] = index
        self._entries.append(b'')
        self._entries[index] = build()
        return index

    def encode(self) -> bytes:
        return encode_leb128(len(self._entries)) + b''.join(self._entries)


class CandidType:
    opcode: ClassVar[int]

    def type_ref(self, table: _TypeTable) -> int:
        return self.opcode

    def encode_value(self, value: Any) -> bytes:
        raise NotImplementedError

    def to_named(self, raw: Any) -> Any:
        raise NotImplementedError


@attrs.define(frozen=True)
class NullType(CandidType):
    opcode = Opcode.NULL

    def encode_value(self, value: Any) -> bytes:
        if value is not None:
            raise _mismatch('null', value)
        return b''

    def to_named(self, raw: Any) -> None:
        if raw is not None:
            raise _mismatch('null', raw)
        return None


@attrs.define(frozen=True)
class BoolType(CandidType):
    opcode = Opcode.BOOL

    def encode_value(self, value: Any) -> bytes:
        if not isinstance(value, bool):
            raise _mismatch('bool', value)
        return b'\x01' if value else b'\x00'

    def to_named(self, raw: Any) -> bool:
        if not isinstance(raw, bool):
            raise _mismatch('bool', raw)
        return raw


def _require_nat(value: Any, bits: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise _mismatch(f'nat{bits or ""}', value)
    if bits and value >= 1 << bits:
        raise SerializationError(f'Value out of nat{bits} range', detail=str(value))
    return value


@attrs.define(frozen=True)
class NatType(CandidType):
    opcode = Opcode.NAT

    def encode_value(self, value: Any) -> bytes:
        return encode_leb128(_require_nat(value))

    def to_named(self, raw: Any) -> int:
        return _require_nat(raw)


@attrs.define(frozen=True)
class FixedNatType(CandidType):
    bits: int

    def type_ref(self, table: _TypeTable) -> int:
        return {8: Opcode.NAT8, 16: Opcode.NAT16, 32: Opcode.NAT32, 64: Opcode.NAT64}[self.bits]

    def encode_value(self, value: Any) -> bytes:
        return _require_nat(value, self.bits).to_bytes(self.bits // 8, 'little')

    def to_named(self, raw: Any) -> int:
        return _require_nat(raw, self.bits)


@attrs.define(frozen=True)
class TextType(CandidType):
    opcode = Opcode.TEXT

    def encode_value(self, value: Any) -> bytes:
        if not isinstance(value, str):
            raise _mismatch('text', value)
        encoded = value.encode('utf-8')
        return encode_leb128(len(encoded)) + encoded

    def to_named(self, raw: Any) -> str:
        if not isinstance(raw, str):
            raise _mismatch('text', raw)
        return raw


@attrs.define(frozen=True)
class PrincipalType(CandidType):
    opcode = Opcode.PRINCIPAL

    def encode_value(self, value: Any) -> bytes:
        raw = principal_from_text(value) if isinstance(value, str) else value
        if not isinstance(raw, bytes):
            raise _mismatch('principal', value)
        return b'\x01' + encode_leb128(len(raw)) + raw

    def to_named(self, raw: Any) -> str:
        if not isinstance(raw, bytes):
            raise _mismatch('principal', raw)
        return principal_to_text(raw)


@attrs.define(frozen=True)
class Opt(CandidType):
    inner: CandidType

    opcode = Opcode.OPT

    def type_ref(self, table: _TypeTable) -> int:
        return table.register(
            self,
            lambda: encode_sleb128(Opcode.OPT) + encode_sleb128(self.inner.type_ref(table)),
        )

    def encode_value(self, value: Any) -> bytes:
        if value is None:
            return b'\x00'
        return b'\x01' + self.inner.encode_value(value)

    def to_named(self, raw: Any) -> Any:
        return None if raw is None else self.inner.to_named(raw)


@attrs.define(frozen=True)
class Vec(CandidType):
    inner: CandidType

    opcode = Opcode.VEC

    def type_ref(self, table: _TypeTable) -> int:
        return table.register(
            self,
            lambda: encode_sleb128(Opcode.VEC) + encode_sleb128(self.inner.type_ref(table)),
        )

    def encode_value(self, value: Any) -> bytes:
        if not isinstance(value, (list, tuple)):
            raise _mismatch('vec', value)
        return encode_leb128(len(value)) + b''.join(self.inner.encode_value(v) for v in value)

    def to_named(self, raw: Any) -> List[Any]:
        if not isinstance(raw, list):
            raise _mismatch('vec', raw)
        return [self.inner.to_named(item) for item in raw]


FieldName = Union[str, int]


def _field_id(name: FieldName) -> int:
    return name if isinstance(name, int) else idl_hash(name)


def _sorted_fields(
    fields: Union[Mapping[str, CandidType], Sequence[Tuple[FieldName, CandidType]]],
) -> Tuple[Tuple[FieldName, CandidType], ...]:
    items = fields.items() if isinstance(fields, Mapping) else fields
    return tuple(sorted(items, key=lambda field: _field_id(field[0])))


def _encode_fields(opcode: int, fields: Sequence[Tuple[FieldName, CandidType]], table) -> bytes:
    out = encode_sleb128(opcode) + encode_leb128(len(fields))
    for name, field_type in fields:
        out += encode_leb128(_field_id(name)) + encode_sleb128(field_type.type_ref(table))
    return out


@attrs.define(frozen=True)
class Record(CandidType):
    fields: Tuple[Tuple[FieldName, CandidType], ...] = attrs.field(converter=_sorted_fields)

    opcode = Opcode.RECORD

    def type_ref(self, table: _TypeTable) -> int:
        return table.register(self, lambda: _encode_fields(Opcode.RECORD, self.fields, table))

    def encode_value(self, value: Any) -> bytes:
        if not isinstance(value, Mapping):
            raise _mismatch('record', value)
        out = b''
        for name, field_type in self.fields:
            if name not in value and not isinstance(field_type, Opt):
                raise SerializationError('Missing record field', detail=str(name))
            out += field_type.encode_value(value.get(name))
        return out

    def to_named(self, raw: Any) -> Dict[FieldName, Any]:
        if not isinstance(raw, dict):
            raise _mismatch('record', raw)
        named = {}
        for name, field_type in self.fields:
            field_id = _field_id(name)
            if field_id in raw:
                named[name] = field_type.to_named(raw[field_id])
            elif isinstance(field_type, Opt):
                named[name] = None
            else:
                raise SerializationError('Missing record field', detail=str(name))
        return named


@attrs.define(frozen=True)
class TupleOf(CandidType):
    """Tuple, carried on the wire as a record with fields 0..n-1."""

    items: Tuple[CandidType, ...] = attrs.field(converter=tuple)

    opcode = Opcode.RECORD

    @property
    def _as_record(self) -> Record:
        return Record(list(enumerate(self.items)))

    def type_ref(self, table: _TypeTable) -> int:
        return self._as_record.type_ref(table)

    def encode_value(self, value: Any) -> bytes:
        if not isinstance(value, (list, tuple)) or len(value) != len(self.items):
            raise _mismatch(f'{len(self.items)}-tuple', value)
        return self._as_record.encode_value(dict(enumerate(value)))

    def to_named(self, raw: Any) -> List[Any]:
        named = self._as_record.to_named(raw)
        return [named[index] for index in range(len(self.items))]


@attrs.define(frozen=True)
class Variant(CandidType):
    alternatives: Tuple[Tuple[FieldName, CandidType], ...] = attrs.field(converter=_sorted_fields)

    opcode = Opcode.VARIANT

    def type_ref(self, table: _TypeTable) -> int:
        return table.register(
            self, lambda: _encode_fields(Opcode.VARIANT, self.alternatives, table)
        )

    def encode_value(self, value: Any) -> bytes:
        if not isinstance(value, Mapping) or len(value) != 1:
            raise _mismatch('variant', value)
        ((tag, payload),) = value.items()
        for index, (name, alternative_type) in enumerate(self.alternatives):
            if name == tag:
                return encode_leb128(index) + alternative_type.encode_value(payload)
        raise SerializationError('Unknown variant tag', detail=str(tag))

    def to_named(self, raw: Any) -> Dict[FieldName, Any]:
        if not isinstance(raw, tuple) or len(raw) != 2:
            raise _mismatch('variant', raw)
        field_id, payload = raw
        for name, alternative_type in self.alternatives:
            if _field_id(name) == field_id:
                return {name: alternative_type.to_named(payload)}
        raise SerializationError('Unknown variant tag', detail=str(field_id))


Null = NullType()
Bool = BoolType()
Nat = NatType()
Nat8 = FixedNatType(8)
Nat32 = FixedNatType(32)
Nat64 = FixedNatType(64)
Text = TextType()
Principal = PrincipalType()


# ---- encoding ----


def encode(types: Sequence[CandidType], values: Sequence[Any]) -> bytes:
    if len(types) != len(values):
        raise SerializationError(
            'Argument count mismatch', detail=f'{len(values)} values for {len(types)} types'
        )
    table = _TypeTable()
    refs = [candid_type.type_ref(table) for candid_type in types]
    body = b''.join(candid_type.encode_value(v) for candid_type, v in zip(types, values))
    return (
        MAGIC
        + table.encode()
        + encode_leb128(len(refs))
        + b''.join(encode_sleb128(ref) for ref in refs)
        + body
    )


# ---- decoding ----


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0

    def take(self, size: int) -> bytes:
        if self.pos + size > len(self.data):
            raise SerializationError('Truncated Candid message', detail=f'at byte {self.pos}')
        chunk = self.data[self.pos : self.pos + size]
        self.pos += size
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]

    def leb128(self) -> int:
        result = shift = 0
        while True:
            byte = self.byte()
            result |= (byte & 0x7F) << shift
            shift += 7
            if not byte & 0x80:
                return result

    def sleb128(self) -> int:
        result = shift = 0
        while True:
            byte = self.byte()
            result |= (byte & 0x7F) << shift
            shift += 7
            if not byte & 0x80:
                if byte & 0x40:
                    result -= 1 << shift
                return result


_TableEntry = Tuple[int, Any]


def _read_type_table(reader: _Reader) -> List[_TableEntry]:
    table: List[_TableEntry] = []
    for _ in range(reader.leb128()):
        opcode = reader.sleb128()
        if opcode in (Opcode.OPT, Opcode.VEC):
            table.append((opcode, reader.sleb128()))
        elif opcode in (Opcode.RECORD, Opcode.VARIANT):
            fields = [(reader.leb128(), reader.sleb128()) for _ in range(reader.leb128())]
            table.append((opcode, fields))
        else:
            raise SerializationError('Unsupported Candid type', detail=f'opcode {opcode}')
    return table


def _read_value(reader: _Reader, table: List[_TableEntry], ref: int) -> Any:
    if ref < 0:
        return _read_primitive(reader, ref)
    if ref >= len(table):
        raise SerializationError('Dangling Candid type reference', detail=str(ref))

    opcode, body = table[ref]
    if opcode == Opcode.OPT:
        flag = reader.byte()
        if flag not in (0, 1):
            raise SerializationError('Malformed opt flag', detail=str(flag))
        return _read_value(reader, table, body) if flag else None
    if opcode == Opcode.VEC:
        size = reader.leb128()
        if body == Opcode.NAT8:
            return reader.take(size)
        return [_read_value(reader, table, body) for _ in range(size)]
    if opcode == Opcode.RECORD:
        return {field_id: _read_value(reader, table, field_ref) for field_id, field_ref in body}

    index = reader.leb128()
    if index >= len(body):
        raise SerializationError('Variant index out of range', detail=str(index))
    field_id, field_ref = body[index]
    return (field_id, _read_value(reader, table, field_ref))


def _read_primitive(reader: _Reader, opcode: int) -> Any:
    if opcode in (Opcode.NULL, Opcode.RESERVED):
        return None
    if opcode == Opcode.BOOL:
        flag = reader.byte()
        if flag not in (0, 1):
            raise SerializationError('Malformed bool', detail=str(flag))
        return bool(flag)
    if opcode == Opcode.NAT:
        return reader.leb128()
    if opcode == Opcode.INT:
        return reader.sleb128()
    if opcode in _FIXED_WIDTH:
        size, signed = _FIXED_WIDTH[opcode]
        return int.from_bytes(reader.take(size), 'little', signed=signed)
    if opcode == Opcode.FLOAT32:
        return struct.unpack('<f', reader.take(4))[0]
    if opcode == Opcode.FLOAT64:
        return struct.unpack('<d', reader.take(8))[0]
    if opcode == Opcode.TEXT:
        try:
            return reader.take(reader.leb128()).decode('utf-8')
        except UnicodeDecodeError as e:
            raise SerializationError('Malformed text', detail=str(e)) from e
    if opcode == Opcode.PRINCIPAL:
        if reader.byte() != 1:
            raise SerializationError('Opaque principal reference')
        return reader.take(reader.leb128())
    raise SerializationError('Unsupported Candid type', detail=f'opcode {opcode}')


def decode_leb128(data: bytes) -> int:
    reader = _Reader(data)
    value = reader.leb128()
    if reader.pos != len(data):
        raise SerializationError('Trailing bytes after nat')
    return value


def decode(data: bytes) -> List[Any]:
    if not data.startswith(MAGIC):
        raise SerializationError('Not a Candid message', detail=data[:8].hex())
    reader = _Reader(data)
    reader.take(len(MAGIC))
    table = _read_type_table(reader)
    arg_refs = [reader.sleb128() for _ in range(reader.leb128())]
    values = [_read_value(reader, table, ref) for ref in arg_refs]
    if reader.pos != len(data):
        raise SerializationError('Trailing bytes after Candid message')
    return values


def decode_as(types: Sequence[CandidType], data: bytes) -> List[Any]:
    values = decode(data)
    if len(values) < len(types):
        raise SerializationError(
            'Too few Candid values', detail=f'{len(values)} for {len(types)} types'
        )
    return [candid_type.to_named(value) for candid_type, value in zip(types, values)]
