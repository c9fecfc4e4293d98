"""Armored Core: For Answer skeletal animations (.ani).

Everything is big-endian. The file starts with a 120 byte header, followed
directly by the node table. Node names, node animations and the two shared
vector buffers live after the table and are reached through absolute
offsets.
"""

import io
import logging
import struct
from dataclasses import dataclass, field
from typing import BinaryIO

import numpy as np

from acani.animation import Frame, FrameFormat, KeyframeWidth, NodeAnimation
from acani.binary import ReaderHelper, Vec3, WriterHelper
from acani.errors import MalformedAniError
from acani.node import Node, NodeType

__all__ = ["ANI", "Frame", "FrameFormat", "KeyframeWidth", "MalformedAniError", "Node", "NodeAnimation", "NodeType", "pack_rotations", "unpack_rotations"]

logger = logging.getLogger(__name__)

MAGIC = 0x20051014
HEADER_SIZE = 120
MIN_FILE_SIZE = 64

# Rotations are stored as three shorts, in thousandths
ROTATION_SCALE = np.float32(1000.0)


def unpack_rotations(data: bytes, count: int) -> list[Vec3]:
    shorts = np.frombuffer(data, dtype=">i2").reshape(count, 3)
    return [tuple(rotation) for rotation in (shorts.astype(np.float32) / ROTATION_SCALE).tolist()]


def pack_rotations(rotations: list[Vec3]) -> bytes:
    """Quantizes rotations, truncating toward zero.

    Components outside roughly +-32.767 wrap around like a C cast to short.
    """
    scaled = np.asarray(rotations, dtype=np.float32).reshape(-1, 3) * ROTATION_SCALE
    return np.trunc(scaled).astype(np.int64).astype(np.int16).astype(">i2").tobytes()


def unpack_translations(data: bytes, count: int) -> list[Vec3]:
    floats = np.frombuffer(data, dtype=">f4").reshape(count, 3)
    return [tuple(translation) for translation in floats.tolist()]


def pack_translations(translations: list[Vec3]) -> bytes:
    return np.asarray(translations, dtype=">f4").reshape(-1, 3).tobytes()


@dataclass
class ANI:
    nodes: list[Node] = field(default_factory=list)
    translations: list[Vec3] = field(default_factory=list)
    rotations: list[Vec3] = field(default_factory=list)

    @property
    def keyframe_count(self) -> int:
        """The highest keyframe of any node animation, 0 without animations."""
        keyframes = [frame.keyframe for node in self.nodes if node.animation is not None for frame in node.animation.frames]
        return max(keyframes + [0])

    @staticmethod
    def is_ani(file: "bytes | bytearray | memoryview | BinaryIO") -> bool:
        if isinstance(file, (bytes, bytearray, memoryview)):
            data = bytes(file[:MIN_FILE_SIZE])
        else:
            pos = file.tell()
            data = file.read(MIN_FILE_SIZE)
            file.seek(pos, io.SEEK_SET)
        if len(data) < MIN_FILE_SIZE:
            return False
        return struct.unpack_from(">I", data)[0] == MAGIC

    @staticmethod
    def read(file: "bytes | bytearray | memoryview | BinaryIO | ReaderHelper") -> "ANI":
        reader = ReaderHelper.from_reader(file)
        magic = reader.read_s32() & 0xFFFFFFFF
        if magic != MAGIC:
            raise MalformedAniError(MalformedAniError.Reason.BAD_MAGIC, f"Unknown magic {magic:#010x}")
        reader.assert_s32(0)
        frame_count = reader.read_s32()
        nodes_offset = reader.read_s32()
        node_count = reader.read_s32()
        translations_offset = reader.read_s32()
        rotations_offset = reader.read_s32()
        translation_count = reader.read_s32()
        rotation_count = reader.read_s32()
        # Might be the scales offset
        data_size = reader.read_s32()
        logger.debug(f"{frame_count=} {nodes_offset=:#x} {node_count=} {translations_offset=:#x} {translation_count=} {rotations_offset=:#x} {rotation_count=} {data_size=:#x}")

        if data_size > reader.length:
            raise MalformedAniError(MalformedAniError.Reason.DATA_SIZE_TOO_LARGE, f"Data size {data_size} is greater than stream size {reader.length}")
        if data_size < reader.length:
            with reader.step_in(data_size):
                reader.assert_pattern(reader.length - data_size, 0)

        reader.assert_s32(0)
        reader.assert_s32(1)
        reader.assert_u8(1)
        reader.assert_u8(1)
        reader.assert_pattern(70, 0)

        with reader.step_in(translations_offset):
            translations = unpack_translations(reader.read(translation_count * 12), translation_count)

        with reader.step_in(rotations_offset):
            rotations = unpack_rotations(reader.read(rotation_count * 6), rotation_count)

        with reader.step_in(nodes_offset):
            nodes = [Node.read(reader, node_index) for node_index in range(node_count)]

        return ANI(nodes, translations, rotations)

    def write(self, file: BinaryIO | None = None, keyframe_width: KeyframeWidth = KeyframeWidth.Int32) -> bytes:
        """Encodes the file, writing it to ``file`` as well if one is given.

        The frame count in the header is always recomputed from the frames.
        """
        writer = WriterHelper()
        writer.write_s32(MAGIC)
        writer.write_s32(0)
        writer.write_s32(self.keyframe_count)
        writer.write_s32(HEADER_SIZE)
        writer.write_s32(len(self.nodes))
        writer.reserve_s32("TranslationsOffset")
        writer.reserve_s32("RotationsOffset")
        writer.write_s32(len(self.translations))
        writer.write_s32(len(self.rotations))
        writer.reserve_s32("DataSize")
        writer.write_s32(0)
        writer.write_s32(1)
        writer.write_u8(1)
        writer.write_u8(1)
        writer.write_pattern(70, 0)

        for node_index, node in enumerate(self.nodes):
            node.write(writer, node_index)

        for node_index, node in enumerate(self.nodes):
            node.write_data(writer, node_index, keyframe_width)

        writer.fill_s32("TranslationsOffset", writer.position)
        writer.write(pack_translations(self.translations))
        writer.fill_s32("RotationsOffset", writer.position)
        writer.write(pack_rotations(self.rotations))

        writer.pad(4)
        writer.fill_s32("DataSize", writer.position)
        writer.pad(16)

        data = writer.finish()
        logger.debug(f"Wrote {len(self.nodes)} nodes, {len(data)} bytes")
        if file is not None:
            file.write(data)
        return data
