"""
Principal text codec

Textual form: CRC-32 (big endian) of the raw bytes followed by the bytes, base32 without
padding, lower case, grouped by five characters with dashes.
"""

import base64
import hashlib
import zlib

from ticketing_client.platform.exception.exceptions import SerializationError


MAX_PRINCIPAL_BYTES = 29
SELF_AUTHENTICATING_SUFFIX = b'\x02'
ANONYMOUS_PRINCIPAL = b'\x04'


def principal_to_text(raw: bytes) -> str:
    if len(raw) > MAX_PRINCIPAL_BYTES:
        raise SerializationError('Principal too long', detail=f'{len(raw)} bytes')
    checksum = zlib.crc32(raw).to_bytes(4, 'big')
    encoded = base64.b32encode(checksum + raw).decode('ascii').lower().rstrip('=')
    return '-'.join(encoded[i : i + 5] for i in range(0, len(encoded), 5))


def principal_from_text(text: str) -> bytes:
    compact = text.replace('-', '').upper()
    padding = '=' * (-len(compact) % 8)
    try:
        decoded = base64.b32decode(compact + padding)
    except ValueError as e:
        raise SerializationError('Malformed principal', detail=text) from e
    if len(decoded) < 4:
        raise SerializationError('Malformed principal', detail=text)

    checksum, raw = decoded[:4], decoded[4:]
    if zlib.crc32(raw).to_bytes(4, 'big') != checksum or principal_to_text(raw) != text:
        raise SerializationError('Principal checksum mismatch', detail=text)
    return raw


def self_authenticating_principal(public_key_der: bytes) -> str:
    """Principal owned by the holder of ``public_key_der``."""
    return principal_to_text(hashlib.sha224(public_key_der).digest() + SELF_AUTHENTICATING_SUFFIX)
