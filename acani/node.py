import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from acani.animation import KeyframeWidth, NodeAnimation
from acani.binary import ReaderHelper, Vec3, WriterHelper
from acani.errors import MalformedAniError

logger = logging.getLogger(__name__)

NODE_SIZE = 0xF4


class NodeType(IntEnum):
    # Intended as geometry
    Geom = 1
    # Connects geometry
    Dummy = 2


@dataclass
class Node:
    """A bone, and where it is each frame.

    Parent, child and sibling links are indices into ``ANI.nodes``; -1 means
    none. They are not checked, so a node may name itself as its parent.
    """

    type: NodeType = NodeType.Geom
    geom_index: int = -1
    parent_index: int = -1
    first_child_index: int = -1
    next_sibling_index: int = -1
    # Always -1 in the files seen so far
    unknown_index: int = -1
    translation: Vec3 = (0.0, 0.0, 0.0)
    rotation: Vec3 = (0.0, 0.0, 0.0)
    scale: Vec3 = (1.0, 1.0, 1.0)
    name: str = ""
    animation: Optional[NodeAnimation] = None

    @staticmethod
    def read(reader: ReaderHelper, node_index: int) -> "Node":
        name_offset = reader.read_s32()
        if name_offset < 1:
            raise MalformedAniError(MalformedAniError.Reason.MISSING_NAME, f"Node {node_index} must have a name")
        name = reader.get_shift_jis(name_offset)
        logger.debug(f"{node_index=} {name=}")

        type_value = reader.read_s32()
        try:
            type = NodeType(type_value)
        except ValueError:
            raise MalformedAniError(MalformedAniError.Reason.UNKNOWN_NODE_TYPE, f"Node {node_index} has type {type_value}") from None

        stored_index = reader.read_s16()
        if stored_index != node_index:
            raise MalformedAniError(MalformedAniError.Reason.NODE_INDEX_MISMATCH, f"Node at position {node_index} is stored as {stored_index}")

        geom_index, parent_index, first_child_index, next_sibling_index, unknown_index = reader.unpack("5h")
        logger.debug(f"{geom_index=} {parent_index=} {first_child_index=} {next_sibling_index=} {unknown_index=}")
        translation = reader.read_vertex()
        rotation = reader.read_vertex()
        scale = reader.read_vertex()
        animation_offset = reader.read_s32()
        reader.assert_pattern(4, 0)
        unknown_offset = reader.read_s32()
        if unknown_offset != 0:
            logger.warning(f"Node '{name}' has unknown data offset {unknown_offset:#x}, it is written back as 0")
        reader.assert_pattern(176, 0)

        animation = None
        if animation_offset > 0:
            with reader.step_in(animation_offset):
                animation = NodeAnimation.read(reader)

        return Node(type, geom_index, parent_index, first_child_index, next_sibling_index, unknown_index, translation, rotation, scale, name, animation)

    def write(self, writer: WriterHelper, node_index: int) -> None:
        writer.reserve_s32(f"NodeNameOffset_{node_index}")
        writer.write_s32(self.type)
        writer.write_s16(node_index)
        writer.pack("5h", self.geom_index, self.parent_index, self.first_child_index, self.next_sibling_index, self.unknown_index)
        writer.write_vertex(self.translation)
        writer.write_vertex(self.rotation)
        writer.write_vertex(self.scale)
        if self.animation is not None:
            writer.reserve_s32(f"AnimationOffset_{node_index}")
        else:
            writer.write_s32(0)
        # reserved, unknown data offset, reserved
        writer.write_pattern(184, 0)

    def write_data(self, writer: WriterHelper, node_index: int, keyframe_width: KeyframeWidth = KeyframeWidth.Int32) -> None:
        """Writes the name and animation that the record from ``write`` points to."""
        writer.fill_s32(f"NodeNameOffset_{node_index}", writer.position)
        writer.write_shift_jis(self.name)
        if self.animation is not None:
            writer.fill_s32(f"AnimationOffset_{node_index}", writer.position)
            self.animation.write(writer, keyframe_width)
