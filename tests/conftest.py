import pytest

from acani.ani import ANI, Frame, FrameFormat, Node, NodeAnimation, NodeType


@pytest.fixture
def sample_ani() -> ANI:
    # Values are chosen to be exact in float32 and in thousandths
    root = Node(
        NodeType.Geom,
        geom_index=0,
        first_child_index=1,
        translation=(0.0, 1.5, 0.0),
        name="root",
        animation=NodeAnimation(
            FrameFormat.PosRotShorts,
            (0.5, 0.0, 0.0),
            (0.0, 0.25, 0.0),
            [Frame(0, 0, 0, 1, 0, 0, 1, 1), Frame(10, 1, 0, 1, 1, 0, 1, 7)],
        ),
    )
    waist = Node(
        NodeType.Dummy,
        parent_index=0,
        next_sibling_index=2,
        name="腰",
        animation=NodeAnimation(
            FrameFormat.RotShorts,
            frames=[Frame(0, -1, -1, -1, 2, 2, 2, 1), Frame(30, -1, -1, -1, 1, 1, 1, 1)],
        ),
    )
    arm = Node(NodeType.Geom, geom_index=1, parent_index=0, first_child_index=3, scale=(2.0, 2.0, 2.0), name="arm")
    hand = Node(
        NodeType.Geom,
        geom_index=2,
        parent_index=2,
        rotation=(0.0, -0.5, 0.0),
        name="hand",
        animation=NodeAnimation(FrameFormat.PosRotBytes, frames=[Frame(5, 0, 1, 0, 1, 2, 1, 1)]),
    )
    translations = [(0.0, 0.0, 0.0), (1.5, -2.0, 0.25)]
    rotations = [(0.0, 0.0, 0.0), (0.5, -0.25, 1.0), (0.125, 0.0, -1.0)]
    return ANI([root, waist, arm, hand], translations, rotations)
