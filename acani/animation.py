import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum

from acani.binary import ReaderHelper, Vec3, WriterHelper
from acani.errors import MalformedAniError

logger = logging.getLogger(__name__)

ANIMATION_HEADER_SIZE = 36


class FrameFormat(IntEnum):
    # Translation and rotation indices stored as bytes
    PosRotBytes = 1
    # Translation and rotation indices stored as shorts
    PosRotShorts = 2
    # Rotation indices stored as shorts
    RotShorts = 4


class KeyframeWidth(IntEnum):
    """Size in bytes of the keyframe field when writing a frame.

    Frames always store a 16-bit keyframe on read, but the existing tools emit
    it as 32 bits. ``Int32`` reproduces those files; ``Int16`` writes data that
    reads back unchanged.
    """

    Int16 = 2
    Int32 = 4


def _unsupported(format: int) -> MalformedAniError:
    return MalformedAniError(MalformedAniError.Reason.UNSUPPORTED_FRAME_FORMAT, f"Frame format {format} has not been implemented")


def _lookup(buffer: Sequence[Vec3], index: int) -> Vec3:
    # -1 means "unused" and must not wrap around to the last entry
    if index < 0:
        raise IndexError(f"index {index} out of range")
    return buffer[index]


@dataclass
class Frame:
    """A transformation at one point in time.

    The indices point into ``ANI.translations`` and ``ANI.rotations``. The
    tangent indices are the in/out control values for cubic-spline sampling.
    """

    keyframe: int = 0
    translation_index: int = 0
    translation_in_tangent_index: int = 0
    translation_out_tangent_index: int = 0
    rotation_index: int = 0
    rotation_in_tangent_index: int = 0
    rotation_out_tangent_index: int = 0
    # Scale index?
    unknown_index: int = 0

    @staticmethod
    def read(reader: ReaderHelper, format: FrameFormat) -> "Frame":
        keyframe = reader.read_s16()
        match format:
            case FrameFormat.PosRotBytes:
                return Frame(keyframe, *reader.unpack("6B"), unknown_index=1)
            case FrameFormat.PosRotShorts:
                return Frame(keyframe, *reader.unpack("7h"))
            case FrameFormat.RotShorts:
                return Frame(keyframe, -1, -1, -1, *reader.unpack("3h"), unknown_index=1)
            case _:
                raise _unsupported(format)

    def write(self, writer: WriterHelper, format: FrameFormat, keyframe_width: KeyframeWidth = KeyframeWidth.Int32) -> None:
        if keyframe_width == KeyframeWidth.Int32:
            writer.write_s32(self.keyframe)
        else:
            writer.write_s16(self.keyframe)
        translations = (self.translation_index, self.translation_in_tangent_index, self.translation_out_tangent_index)
        rotations = (self.rotation_index, self.rotation_in_tangent_index, self.rotation_out_tangent_index)
        match format:
            case FrameFormat.PosRotBytes:
                # Indices above 255 are truncated, as the game's tools do
                writer.pack("6B", *(value & 0xFF for value in translations + rotations))
            case FrameFormat.PosRotShorts:
                writer.pack("7h", *translations, *rotations, self.unknown_index)
            case FrameFormat.RotShorts:
                writer.pack("3h", *rotations)
            case _:
                raise _unsupported(format)

    def get_translation(self, translations: Sequence[Vec3]) -> Vec3:
        return _lookup(translations, self.translation_index)

    def get_translation_in_tangent(self, translations: Sequence[Vec3]) -> Vec3:
        return _lookup(translations, self.translation_in_tangent_index)

    def get_translation_out_tangent(self, translations: Sequence[Vec3]) -> Vec3:
        return _lookup(translations, self.translation_out_tangent_index)

    def get_rotation(self, rotations: Sequence[Vec3]) -> Vec3:
        return _lookup(rotations, self.rotation_index)

    def get_rotation_in_tangent(self, rotations: Sequence[Vec3]) -> Vec3:
        return _lookup(rotations, self.rotation_in_tangent_index)

    def get_rotation_out_tangent(self, rotations: Sequence[Vec3]) -> Vec3:
        return _lookup(rotations, self.rotation_out_tangent_index)


@dataclass
class NodeAnimation:
    format: FrameFormat = FrameFormat.PosRotShorts
    # Usually the same as the rotation of the owning node
    unknown_vector_1: Vec3 = (0.0, 0.0, 0.0)
    unknown_vector_2: Vec3 = (0.0, 0.0, 0.0)
    frames: list[Frame] = field(default_factory=list)

    @staticmethod
    def read(reader: ReaderHelper) -> "NodeAnimation":
        """Reads the header at the current position, then jumps to the frames.

        The cursor is left after the last frame; callers that need it back
        wrap this in ``ReaderHelper.step_in``.
        """
        frames_offset = reader.read_s32()
        frame_count = reader.read_s32()
        format_value = reader.read_s32()
        logger.debug(f"{frames_offset=:#x} {frame_count=} {format_value=}")
        try:
            format = FrameFormat(format_value)
        except ValueError:
            raise _unsupported(format_value) from None
        unknown_vector_1 = reader.read_vertex()
        unknown_vector_2 = reader.read_vertex()
        reader.assert_s32(0)

        reader.seek(frames_offset)
        frames = [Frame.read(reader, format) for _ in range(frame_count)]
        return NodeAnimation(format, unknown_vector_1, unknown_vector_2, frames)

    def write(self, writer: WriterHelper, keyframe_width: KeyframeWidth = KeyframeWidth.Int32) -> None:
        try:
            format = FrameFormat(self.format)
        except ValueError:
            raise _unsupported(self.format) from None
        writer.write_s32(writer.position + ANIMATION_HEADER_SIZE)
        writer.write_s32(len(self.frames))
        writer.write_s32(format)
        writer.write_vertex(self.unknown_vector_1)
        writer.write_vertex(self.unknown_vector_2)
        writer.write_s32(0)

        for frame in self.frames:
            frame.write(writer, format, keyframe_width)
