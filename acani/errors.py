from enum import Enum


class MalformedAniError(ValueError):
    class Reason(Enum):
        BAD_MAGIC = "bad magic"
        DATA_SIZE_TOO_LARGE = "data size greater than stream size"
        NON_ZERO_PADDING = "non-zero padding"
        UNEXPECTED_VALUE = "unexpected value"
        UNEXPECTED_EOF = "unexpected end of data"
        NODE_INDEX_MISMATCH = "node index mismatch"
        MISSING_NAME = "missing name"
        UNKNOWN_NODE_TYPE = "unknown node type"
        INVALID_NAME = "invalid name encoding"
        UNSUPPORTED_FRAME_FORMAT = "unsupported frame format"

    def __init__(self, reason: "MalformedAniError.Reason", message: str):
        super().__init__(f"{reason.value}: {message}")
        self.reason = reason
