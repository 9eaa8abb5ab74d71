"""
Script Data Codec

Encode and decode the tagged data algebra used by datums, redeemers and
script parameters: integers, byte strings, constructors, lists and maps.

Encoding follows the canonical Plutus layout so that identical values always
produce identical bytes:
    - constructor tags 0-6 use CBOR tags 121-127, tags 7-127 use 1280-1400,
      anything else uses tag 102 wrapping ``[tag, fields]``
    - non-empty lists and constructor fields are indefinite-length arrays,
      empty ones are ``0x80``
    - byte strings longer than 64 bytes are split into 64-byte chunks
    - integers outside the 64-bit range become CBOR bignums
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Tuple, Union

import cbor2
from pycardano.serialization import IndefiniteList, default_encoder

from .exceptions import MalformedData


BYTES_CHUNK_SIZE = 64

COMPACT_TAG_BASE = 121
EXTENDED_TAG_BASE = 1280
GENERAL_TAG = 102


@dataclass(frozen=True)
class Constr:
    """Tagged constructor with an ordered list of fields"""

    tag: int
    fields: Tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))


@dataclass(frozen=True)
class PlutusMap:
    """Ordered key/value pairs; keys may be any script data value"""

    entries: Tuple[Tuple[Any, Any], ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "entries", tuple((k, v) for k, v in self.entries))


ScriptData = Union[int, bytes, Constr, list, PlutusMap]


class _ChunkedBytes:
    def __init__(self, value: bytes):
        self.value = value


class _DefiniteMap:
    def __init__(self, entries):
        self.entries = entries


def _head(major: int, length: int) -> bytes:
    """CBOR initial byte(s) for a definite-length item"""
    if length < 24:
        return bytes([major << 5 | length])
    if length < 0x100:
        return bytes([major << 5 | 24]) + length.to_bytes(1, "big")
    if length < 0x10000:
        return bytes([major << 5 | 25]) + length.to_bytes(2, "big")
    if length < 0x100000000:
        return bytes([major << 5 | 26]) + length.to_bytes(4, "big")
    return bytes([major << 5 | 27]) + length.to_bytes(8, "big")


def _default(encoder, value):
    if isinstance(value, _ChunkedBytes):
        encoder.write(b"\x5f")
        for i in range(0, len(value.value), BYTES_CHUNK_SIZE):
            encoder.encode(value.value[i : i + BYTES_CHUNK_SIZE])
        encoder.write(b"\xff")
    elif isinstance(value, _DefiniteMap):
        encoder.write(_head(5, len(value.entries)))
        for key, item in value.entries:
            encoder.encode(key)
            encoder.encode(item)
    else:
        default_encoder(encoder, value)


def _list_primitive(items) -> Any:
    if not items:
        return []
    return IndefiniteList([_to_primitive(item) for item in items])


def _to_primitive(value: Any) -> Any:
    """Map a script data value onto objects the CBOR encoder understands"""
    if isinstance(value, bool):
        raise MalformedData(f"Booleans are not script data: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value)
        if len(value) > BYTES_CHUNK_SIZE:
            return _ChunkedBytes(value)
        return value
    if isinstance(value, Constr):
        if value.tag < 0:
            raise MalformedData(f"Negative constructor tag: {value.tag}")
        fields = _list_primitive(value.fields)
        if value.tag <= 6:
            return cbor2.CBORTag(COMPACT_TAG_BASE + value.tag, fields)
        if value.tag <= 127:
            return cbor2.CBORTag(EXTENDED_TAG_BASE + value.tag - 7, fields)
        return cbor2.CBORTag(GENERAL_TAG, [value.tag, fields])
    if isinstance(value, (list, tuple)):
        return _list_primitive(value)
    if isinstance(value, PlutusMap):
        return _DefiniteMap([(_to_primitive(k), _to_primitive(v)) for k, v in value.entries])
    raise MalformedData(f"Value of type {type(value).__name__} is not script data")


def _from_primitive(obj: Any) -> ScriptData:
    """Turn decoded CBOR into a script data value"""
    if isinstance(obj, bool):
        raise MalformedData("Booleans are not script data")
    if isinstance(obj, int):
        return obj
    if isinstance(obj, bytes):
        return obj
    if isinstance(obj, (list, tuple)):
        return [_from_primitive(item) for item in obj]
    if isinstance(obj, Mapping):
        return PlutusMap(tuple((_from_primitive(k), _from_primitive(v)) for k, v in obj.items()))
    if isinstance(obj, cbor2.CBORTag):
        if COMPACT_TAG_BASE <= obj.tag <= COMPACT_TAG_BASE + 6:
            return Constr(obj.tag - COMPACT_TAG_BASE, _fields_from_primitive(obj.value))
        if EXTENDED_TAG_BASE <= obj.tag <= EXTENDED_TAG_BASE + 120:
            return Constr(obj.tag - EXTENDED_TAG_BASE + 7, _fields_from_primitive(obj.value))
        if obj.tag == GENERAL_TAG:
            if (
                not isinstance(obj.value, (list, tuple))
                or len(obj.value) != 2
                or isinstance(obj.value[0], bool)
                or not isinstance(obj.value[0], int)
            ):
                raise MalformedData("General constructor form must be [tag, fields]")
            return Constr(obj.value[0], _fields_from_primitive(obj.value[1]))
        raise MalformedData(f"Unsupported CBOR tag {obj.tag}")
    raise MalformedData(f"Unsupported CBOR item of type {type(obj).__name__}")


def _fields_from_primitive(obj: Any) -> Tuple[ScriptData, ...]:
    if not isinstance(obj, (list, tuple)):
        raise MalformedData("Constructor fields must be an array")
    return tuple(_from_primitive(item) for item in obj)


def encode(value: ScriptData) -> bytes:
    """Encode a script data value to its canonical CBOR bytes"""
    return cbor2.dumps(_to_primitive(value), default=_default)


def decode(data: bytes) -> ScriptData:
    """
    Decode CBOR bytes into a script data value

    Raises:
        MalformedData: on truncated, invalid or out-of-algebra input
    """
    if not data:
        raise MalformedData("Empty script data")
    try:
        obj = cbor2.loads(data)
    except (cbor2.CBORDecodeError, ValueError, TypeError) as e:
        raise MalformedData(f"Invalid CBOR: {e}") from e
    return _from_primitive(obj)


def to_hex(value: ScriptData) -> str:
    return encode(value).hex()


def from_hex(data_hex: str) -> ScriptData:
    try:
        data = bytes.fromhex(data_hex)
    except (TypeError, ValueError) as e:
        raise MalformedData(f"Script data is not valid hex: {e}") from e
    return decode(data)
