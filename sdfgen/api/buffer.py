import sys
import numpy as np
from typing import NamedTuple
from .core import Operation, Shape, Distortion, StructuralError
from .dialects import get_dialect

MAX_NODES = 128

# Layout of one record as bound to the GPU structured buffer.
NODE_DTYPE = np.dtype([
    ('transform', '<f4', (4, 4)),
    ('type', '<i4'),
    ('parameters', '<i4'),
    ('depth', '<i4'),
    ('distortion_type', '<i4'),
    ('distortion_param', '<f4', (3,)),
    ('bias', '<f4'),
])

class FlatNodeRecord(NamedTuple):
    inverse_transform: np.ndarray
    node_type: int
    type_parameter: int
    depth: int
    distortion_type: int
    distortion_param: np.ndarray
    bias: float


class FlatBufferEmitter:
    """
    Flattens a scene tree into pre-order records for evaluators that walk
    the logical tree on the GPU. No optimization is applied.
    """
    def __init__(self):
        self.errors = []

    def emit(self, root) -> list:
        self.errors = []
        records = []
        if root is not None:
            self._emit(root, 0, records)
        return records

    def _emit(self, node, depth: int, records: list):
        if not node.active:
            return

        if isinstance(node, Operation):
            distortion_type = int(node.distortion)
            distortion_param = node.repeat_period.copy()
            bias = 1.0
        elif isinstance(node, Shape):
            # Shapes reuse the distortion slot for their parameter vector.
            distortion_type = int(Distortion.NONE)
            distortion_param = node.parameters
            bias = node.bias
        else:
            self.errors.append(StructuralError(node, "node is neither an Operation nor a Shape"))
            return

        records.append(FlatNodeRecord(
            inverse_transform=node.inverse_matrix(),
            node_type=int(node.node_type),
            type_parameter=node.type_parameter,
            depth=depth,
            distortion_type=distortion_type,
            distortion_param=distortion_param,
            bias=bias,
        ))
        for child in node.children:
            self._emit(child, depth + 1, records)


def pack_records(records, max_nodes: int = MAX_NODES, dialect='glsl') -> np.ndarray:
    """
    Packs records into a NODE_DTYPE array, silently dropping any beyond
    `max_nodes`. Matrices are transposed for column-major dialects.
    """
    d = get_dialect(dialect)
    records = records[:max_nodes]
    data = np.zeros(len(records), dtype=NODE_DTYPE)
    for i, r in enumerate(records):
        data['transform'][i] = r.inverse_transform.T if d.column_major else r.inverse_transform
        data['type'][i] = r.node_type
        data['parameters'][i] = r.type_parameter
        data['depth'][i] = r.depth
        data['distortion_type'][i] = r.distortion_type
        data['distortion_param'][i] = r.distortion_param
        data['bias'][i] = r.bias
    return data

def build_node_buffer(root, max_nodes: int = MAX_NODES, dialect='glsl'):
    """
    Returns `(buffer, count)` ready to upload: a NODE_DTYPE array of
    exactly `max_nodes` entries and the number of records in use.
    """
    emitter = FlatBufferEmitter()
    records = emitter.emit(root)
    for error in emitter.errors:
        print(f"WARNING: Skipped malformed node {error}", file=sys.stderr)
    packed = pack_records(records, max_nodes, dialect)
    buffer = np.zeros(max_nodes, dtype=NODE_DTYPE)
    buffer[:len(packed)] = packed
    return buffer, len(packed)
