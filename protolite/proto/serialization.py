"""Wire-format reader/writer and base classes for generated protolite types."""

import base64
import struct
from enum import IntEnum
from typing import Any, Self

MASK32 = 0xFFFFFFFF
MASK64 = 0xFFFFFFFFFFFFFFFF


class SerializationError(RuntimeError):
    """Raised when serialization or deserialization fails."""


class WireType(IntEnum):
    """The 3-bit wire type carried in the low bits of every tag."""

    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    START_GROUP = 3
    END_GROUP = 4
    FIXED32 = 5


class Writer:
    """Accumulates protobuf wire-format bytes.

    Every ``write_*`` method returns the writer so calls can be chained.
    Length-delimited sub-messages are written between ``fork()`` and
    ``ldelim()``:

        writer.write_uint32(18).fork()
        child.encode(writer)
        writer.ldelim()
    """

    def __init__(self) -> None:
        self._buf = bytearray()
        self._stack: list[bytearray] = []

    def _varint(self, value: int) -> Self:
        while value > 0x7F:
            self._buf.append((value & 0x7F) | 0x80)
            value >>= 7
        self._buf.append(value)
        return self

    def write_uint32(self, value: int) -> Self:
        return self._varint(value & MASK32)

    def write_int32(self, value: int) -> Self:
        # negative int32 values are sign extended to ten bytes
        return self._varint(value & MASK64)

    def write_sint32(self, value: int) -> Self:
        return self._varint(((value << 1) ^ (value >> 31)) & MASK32)

    def write_uint64(self, value: int) -> Self:
        return self._varint(value & MASK64)

    def write_int64(self, value: int) -> Self:
        return self._varint(value & MASK64)

    def write_sint64(self, value: int) -> Self:
        return self._varint(((value << 1) ^ (value >> 63)) & MASK64)

    def write_bool(self, value: bool) -> Self:
        return self._varint(1 if value else 0)

    def write_fixed32(self, value: int) -> Self:
        self._buf.extend(struct.pack("<I", value & MASK32))
        return self

    def write_sfixed32(self, value: int) -> Self:
        self._buf.extend(struct.pack("<i", value))
        return self

    def write_fixed64(self, value: int) -> Self:
        self._buf.extend(struct.pack("<Q", value & MASK64))
        return self

    def write_sfixed64(self, value: int) -> Self:
        self._buf.extend(struct.pack("<q", value))
        return self

    def write_float(self, value: float) -> Self:
        self._buf.extend(struct.pack("<f", value))
        return self

    def write_double(self, value: float) -> Self:
        self._buf.extend(struct.pack("<d", value))
        return self

    def write_bytes(self, value: bytes) -> Self:
        self._varint(len(value))
        self._buf.extend(value)
        return self

    def write_string(self, value: str) -> Self:
        return self.write_bytes(value.encode("utf-8"))

    def fork(self) -> Self:
        """Start a length-delimited section."""
        self._stack.append(self._buf)
        self._buf = bytearray()
        return self

    def ldelim(self) -> Self:
        """Close the innermost ``fork()``, prefixing its content with its length."""
        if not self._stack:
            raise SerializationError("ldelim() without matching fork()")
        data = self._buf
        self._buf = self._stack.pop()
        return self.write_bytes(data)

    def finish(self) -> bytes:
        """Return the encoded bytes."""
        if self._stack:
            raise SerializationError(f"{len(self._stack)} fork() call(s) never closed")
        return bytes(self._buf)


class Reader:
    """Cursor over protobuf wire-format bytes."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self.buf = bytes(data)
        self.pos = 0
        self.len = len(self.buf)

    def _take(self, size: int) -> bytes:
        end = self.pos + size
        if size < 0 or end > self.len:
            raise SerializationError(f"read of {size} bytes at offset {self.pos} exceeds buffer")
        data = self.buf[self.pos : end]
        self.pos = end
        return data

    def _varint(self) -> int:
        result = 0
        shift = 0
        while True:
            if self.pos >= self.len:
                raise SerializationError("truncated varint")
            byte = self.buf[self.pos]
            self.pos += 1
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return result
            shift += 7
            if shift >= 70:
                raise SerializationError("varint exceeds 10 bytes")

    def read_uint32(self) -> int:
        return self._varint() & MASK32

    def read_int32(self) -> int:
        value = self._varint() & MASK32
        return value - (1 << 32) if value & 0x80000000 else value

    def read_sint32(self) -> int:
        value = self._varint() & MASK32
        return (value >> 1) ^ -(value & 1)

    def read_uint64(self) -> int:
        return self._varint() & MASK64

    def read_int64(self) -> int:
        value = self._varint() & MASK64
        return value - (1 << 64) if value & (1 << 63) else value

    def read_sint64(self) -> int:
        value = self._varint() & MASK64
        return (value >> 1) ^ -(value & 1)

    def read_bool(self) -> bool:
        return self._varint() != 0

    def read_fixed32(self) -> int:
        return struct.unpack("<I", self._take(4))[0]

    def read_sfixed32(self) -> int:
        return struct.unpack("<i", self._take(4))[0]

    def read_fixed64(self) -> int:
        return struct.unpack("<Q", self._take(8))[0]

    def read_sfixed64(self) -> int:
        return struct.unpack("<q", self._take(8))[0]

    def read_float(self) -> float:
        return struct.unpack("<f", self._take(4))[0]

    def read_double(self) -> float:
        return struct.unpack("<d", self._take(8))[0]

    def read_bytes(self) -> bytes:
        return self._take(self.read_uint32())

    def read_string(self) -> str:
        return self.read_bytes().decode("utf-8")

    def skip(self, size: int | None = None) -> Self:
        """Skip ``size`` bytes, or one varint when no size is given."""
        if size is None:
            self._varint()
        else:
            self._take(size)
        return self

    def skip_type(self, wire_type: int) -> Self:
        """Skip one value of the given wire type."""
        if wire_type == WireType.VARINT:
            self.skip()
        elif wire_type == WireType.FIXED64:
            self.skip(8)
        elif wire_type == WireType.LENGTH_DELIMITED:
            self.skip(self.read_uint32())
        elif wire_type == WireType.START_GROUP:
            while True:
                inner = self.read_uint32() & 7
                if inner == WireType.END_GROUP:
                    break
                self.skip_type(inner)
        elif wire_type == WireType.FIXED32:
            self.skip(4)
        else:
            raise SerializationError(f"invalid wire type {wire_type} at offset {self.pos}")
        return self


class Message:
    """Base class for generated message types.

    Subclasses are @dataclass decorated and override the codec methods that
    were enabled at generation time.

    Example:
        @dataclass
        class Point(Message):
            x: int = 0
            y: int = 0

            def encode(self, writer: Writer | None = None) -> Writer: ...
    """

    def encode(self, writer: Writer | None = None) -> Writer:
        """Encode this message. Generated code overrides this."""
        raise NotImplementedError("encode() was not generated for this message")

    @classmethod
    def decode(cls, input: Reader | bytes, length: int | None = None) -> Self:
        """Decode a message from a reader or raw bytes.

        Args:
            input: A reader positioned at the message, or its bytes.
            length: Number of bytes belonging to the message. Defaults to the
                rest of the reader.
        """
        raise NotImplementedError("decode() was not generated for this message")

    @classmethod
    def from_json(cls, obj: Any) -> Self:
        """Build a message from its JSON object form."""
        raise NotImplementedError("from_json() was not generated for this message")

    def to_json(self) -> dict[str, Any]:
        """Return the JSON object form of this message."""
        raise NotImplementedError("to_json() was not generated for this message")

    @classmethod
    def from_partial(cls, obj: Any) -> Self:
        """Build a complete message from a (nested) mapping of some of its fields."""
        raise NotImplementedError("from_partial() was not generated for this message")


class ProtoEnum(IntEnum):
    """Base class for generated enums.

    Generated subclasses always declare ``UNRECOGNIZED = -1``; looking up a
    value that is not declared resolves to that member instead of failing.
    """

    @classmethod
    def _missing_(cls, value: object) -> Any:
        return cls.__members__.get("UNRECOGNIZED")

    @classmethod
    def from_json(cls, obj: Any) -> Self:
        """Resolve a JSON name or number. Generated code overrides this."""
        raise NotImplementedError("from_json() was not generated for this enum")

    @classmethod
    def to_json(cls, value: int) -> str:
        """Return the JSON name of a value. Generated code overrides this."""
        raise NotImplementedError("to_json() was not generated for this enum")


def bytes_from_base64(value: str | bytes) -> bytes:
    """Decode standard or URL-safe base64, with or without padding."""
    if isinstance(value, bytes):
        value = value.decode("ascii")
    value = value.replace("-", "+").replace("_", "/")
    return base64.b64decode(value + "=" * (-len(value) % 4))


def base64_from_bytes(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
