import logging
import struct
from contextlib import contextmanager
from typing import BinaryIO, Iterator

from acani.errors import MalformedAniError

logger = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]

# Shift-JIS as the Windows code page, which is what the game tools emit.
ENCODING = "cp932"


class ReaderHelper:
    """Cursor over an in-memory buffer with absolute seeking.

    Every read that runs off the buffer raises ``MalformedAniError`` with
    ``UNEXPECTED_EOF`` rather than ``struct.error``.
    """

    _data: bytes
    _position: int

    def __init__(self, data: bytes, big_endian: bool = True):
        self._data = bytes(data)
        self._position = 0
        self._endian = ">" if big_endian else "<"

    @staticmethod
    def from_reader(file: "bytes | bytearray | memoryview | BinaryIO | ReaderHelper") -> "ReaderHelper":
        if isinstance(file, ReaderHelper):
            return file
        if isinstance(file, (bytes, bytearray, memoryview)):
            return ReaderHelper(bytes(file))
        return ReaderHelper(file.read())

    @property
    def length(self) -> int:
        return len(self._data)

    @property
    def position(self) -> int:
        return self._position

    def seek(self, position: int) -> None:
        if position < 0 or position > len(self._data):
            raise MalformedAniError(MalformedAniError.Reason.UNEXPECTED_EOF, f"Seek to {position} outside of {len(self._data)} bytes")
        self._position = position

    @contextmanager
    def step_in(self, position: int) -> Iterator["ReaderHelper"]:
        saved = self._position
        self.seek(position)
        try:
            yield self
        finally:
            self._position = saved

    def unpack(self, fmt: str) -> tuple:
        try:
            values = struct.unpack_from(self._endian + fmt, self._data, self._position)
        except struct.error:
            raise MalformedAniError(MalformedAniError.Reason.UNEXPECTED_EOF, f"Cannot read '{fmt}' at {self._position:#x}") from None
        self._position += struct.calcsize(self._endian + fmt)
        return values

    def read(self, length: int) -> bytes:
        if length < 0 or self._position + length > len(self._data):
            raise MalformedAniError(MalformedAniError.Reason.UNEXPECTED_EOF, f"Cannot read {length} bytes at {self._position:#x}")
        result = self._data[self._position : self._position + length]
        self._position += length
        return result

    def read_u8(self) -> int:
        return self.unpack("B")[0]

    def read_s16(self) -> int:
        return self.unpack("h")[0]

    def read_s32(self) -> int:
        return self.unpack("i")[0]

    def read_vertex(self) -> Vec3:
        x, y, z = self.unpack("fff")
        return x, y, z

    def assert_u8(self, expected: int) -> None:
        pos = self._position
        value = self.read_u8()
        if value != expected:
            raise MalformedAniError(MalformedAniError.Reason.UNEXPECTED_VALUE, f"Expected byte {expected} at {pos:#x}, got {value}")

    def assert_s32(self, expected: int) -> None:
        pos = self._position
        value = self.read_s32()
        if value != expected:
            raise MalformedAniError(MalformedAniError.Reason.UNEXPECTED_VALUE, f"Expected int32 {expected} at {pos:#x}, got {value}")

    def assert_pattern(self, length: int, value: int) -> None:
        pos = self._position
        data = self.read(length)
        if data != bytes([value]) * length:
            raise MalformedAniError(MalformedAniError.Reason.NON_ZERO_PADDING if value == 0 else MalformedAniError.Reason.UNEXPECTED_VALUE, f"Expected {length} bytes of {value:#04x} at {pos:#x}")

    def get_shift_jis(self, position: int) -> str:
        """Reads a null terminated string at ``position`` without moving the cursor."""
        with self.step_in(position):
            end = self._data.find(b"\0", self._position)
            if end == -1:
                raise MalformedAniError(MalformedAniError.Reason.UNEXPECTED_EOF, f"Unterminated string at {position:#x}")
            try:
                return self._data[position:end].decode(ENCODING)
            except UnicodeDecodeError:
                raise MalformedAniError(MalformedAniError.Reason.INVALID_NAME, f"String at {position:#x} is not valid {ENCODING}") from None


class WriterHelper:
    """Growable output buffer with named placeholders.

    ``reserve_s32`` writes a zero placeholder and remembers where it went,
    ``fill_s32`` records its real value, and ``finish`` patches every
    placeholder into the completed output in one pass.
    """

    def __init__(self, big_endian: bool = True):
        self._buffer = bytearray()
        self._endian = ">" if big_endian else "<"
        self._reservations: dict[str, int] = {}
        self._fills: dict[str, int] = {}

    @property
    def position(self) -> int:
        return len(self._buffer)

    def pack(self, fmt: str, *values) -> None:
        self._buffer.extend(struct.pack(self._endian + fmt, *values))

    def write(self, data: bytes) -> None:
        self._buffer.extend(data)

    def write_u8(self, value: int) -> None:
        self.pack("B", value)

    def write_s16(self, value: int) -> None:
        self.pack("h", value)

    def write_s32(self, value: int) -> None:
        self.pack("i", value)

    def write_vertex(self, value: Vec3) -> None:
        self.pack("fff", *value)

    def write_pattern(self, length: int, value: int) -> None:
        self._buffer.extend(bytes([value]) * length)

    def write_shift_jis(self, text: str, terminate: bool = True) -> None:
        self._buffer.extend(text.encode(ENCODING))
        if terminate:
            self._buffer.append(0)

    def pad(self, alignment: int) -> None:
        remainder = len(self._buffer) % alignment
        if remainder:
            self.write_pattern(alignment - remainder, 0)

    def reserve_s32(self, name: str) -> None:
        if name in self._reservations:
            raise ValueError(f"Placeholder '{name}' is already reserved")
        self._reservations[name] = len(self._buffer)
        self.write_s32(0)

    def fill_s32(self, name: str, value: int) -> None:
        if name not in self._reservations:
            raise KeyError(name)
        self._fills[name] = value

    def finish(self) -> bytes:
        unfilled = [name for name in self._reservations if name not in self._fills]
        if unfilled:
            raise RuntimeError(f"Placeholders never filled: {', '.join(unfilled)}")
        for name, position in self._reservations.items():
            struct.pack_into(self._endian + "i", self._buffer, position, self._fills[name])
            logger.debug(f"{name=} {position=:#x} value={self._fills[name]:#x}")
        return bytes(self._buffer)
