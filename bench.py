import io
import logging
import os
import timeit

import dotenv

from acani.ani import ANI, Frame, FrameFormat, KeyframeWidth, Node, NodeAnimation, NodeType

dotenv.load_dotenv()

logger = logging.getLogger(__name__)


def synthetic_ani(node_count: int = 64, frame_count: int = 120) -> ANI:
    nodes = []
    for index in range(node_count):
        frames = [Frame(keyframe, keyframe, keyframe, keyframe, keyframe, keyframe, keyframe, 1) for keyframe in range(frame_count)]
        nodes.append(Node(NodeType.Dummy if index % 2 else NodeType.Geom, parent_index=index - 1, name=f"node_{index:03}", animation=NodeAnimation(FrameFormat.PosRotShorts, frames=frames)))
    translations = [(float(i), 0.0, 0.0) for i in range(frame_count)]
    rotations = [(0.0, i / 100, 0.0) for i in range(frame_count)]
    return ANI(nodes, translations, rotations)


def bench(file: io.BytesIO) -> None:
    file.seek(0, io.SEEK_SET)
    ANI.read(file).write(keyframe_width=KeyframeWidth.Int16)


if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("ANI_LOG_LEVEL", "INFO"))
    rounds = int(os.getenv("ANI_BENCH_ROUNDS", "20"))
    path = os.getenv("ANI_BENCH_FILE")
    if path:
        with open(path, "rb") as f:
            data = f.read()
    else:
        logger.info("ANI_BENCH_FILE is not set, using a synthetic file")
        data = synthetic_ani().write(keyframe_width=KeyframeWidth.Int16)

    with io.BytesIO(data) as file:
        execution_time = timeit.timeit(lambda: bench(file), number=rounds)
        print(f"Execution time: {execution_time:.2f} seconds")
