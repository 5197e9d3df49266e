import numpy as np
from enum import IntEnum
from typing import NamedTuple
from .utils import (
    IDENTITY_ROTATION, _is_close, quaternion, quaternion_multiply,
    rotation_matrix, trs_matrix,
)

class NodeType(IntEnum):
    OPERATION = 0
    SHAPE = 1

class OperationKind(IntEnum):
    UNION = 0
    SUBTRACTION = 1
    INTERSECTION = 2

class ShapeKind(IntEnum):
    NONE = 0
    PLANE = 1
    SPHERE = 2
    CUBE = 3
    CYLINDER = 4
    MESH = 5
    FRACTURED_PLANE = 6

class Distortion(IntEnum):
    NONE = 0
    REPEAT = 1
    REPEAT_X = 2
    REPEAT_Y = 3
    REPEAT_Z = 4
    REPEAT_POLAR_X = 5
    REPEAT_POLAR_Y = 6
    REPEAT_POLAR_Z = 7
    MIRROR = 8
    MIRROR_XZ = 9
    MIRROR_X = 10
    MIRROR_Y = 11
    MIRROR_Z = 12
    ROTATE_DISCRETE_X = 13
    ROTATE_DISCRETE_Y = 14
    ROTATE_DISCRETE_Z = 15
    FLIP_X = 16
    FLIP_Y = 17
    FLIP_Z = 18

    @property
    def axis(self) -> int:
        """Index of the axis a single-axis distortion acts on, or -1."""
        name = self.name
        if name[-2] == '_' and name[-1] in 'XYZ':
            return 'XYZ'.index(name[-1])
        return -1

def _coerce_enum(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip().upper().replace(' ', '_').replace('-', '_')
        if key not in enum_cls.__members__:
            raise ValueError(f"Unknown {enum_cls.__name__}: {value}")
        return enum_cls[key]
    return enum_cls(int(value))


class StructuralError(NamedTuple):
    """A node that could not be placed in the compiled output."""
    node: 'SceneNode'
    message: str

    def __str__(self):
        return f"{self.node.name}: {self.message}"

class MalformedSceneError(ValueError):
    """Raised in strict mode once traversal finishes with structural errors."""
    def __init__(self, errors, source: str = ""):
        self.errors = list(errors)
        self.source = source
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(f"Scene contains {len(self.errors)} malformed node(s): {details}")


class Transform:
    """Local position / rotation (x, y, z, w quaternion) / scale of a node."""
    def __init__(self, position=(0, 0, 0), rotation=IDENTITY_ROTATION, scale=(1, 1, 1)):
        self.position = np.array(position, dtype=float)
        self.rotation = np.array(rotation, dtype=float)
        if isinstance(scale, (int, float)):
            scale = (scale, scale, scale)
        self.scale = np.array(scale, dtype=float)

    def matrix(self) -> np.ndarray:
        return trs_matrix(self.position, self.rotation, self.scale)

    def inverse_matrix(self) -> np.ndarray:
        """Inverse of T·R·S, or all zeros when a scale axis is zero."""
        try:
            return np.linalg.inv(self.matrix())
        except np.linalg.LinAlgError:
            return np.zeros((4, 4))

    def has_rotation(self) -> bool:
        n = np.linalg.norm(self.rotation)
        if n == 0:
            return False
        q = self.rotation / n
        return not (_is_close(q, IDENTITY_ROTATION) or _is_close(q, -IDENTITY_ROTATION))

    def has_scale(self) -> bool:
        return not _is_close(self.scale, (1, 1, 1))

    def has_translation(self) -> bool:
        return not _is_close(self.position, (0, 0, 0))

    def is_identity(self) -> bool:
        return not (self.has_translation() or self.has_rotation() or self.has_scale())

    def without_scale(self) -> 'Transform':
        return Transform(self.position, self.rotation, (1, 1, 1))

    def up(self) -> np.ndarray:
        return rotation_matrix(self.rotation) @ np.array([0.0, 1.0, 0.0])

    def __repr__(self):
        return f"Transform(position={self.position.tolist()}, rotation={self.rotation.tolist()}, scale={self.scale.tolist()})"


class SceneNode:
    """
    A node in the scene hierarchy.

    A bare SceneNode is neither an Operation nor a Shape; compilers and
    emitters report it as a structural error and skip its subtree.
    """
    def __init__(self, children=None, position=(0, 0, 0), rotation=IDENTITY_ROTATION,
                 scale=(1, 1, 1), active: bool = True, name: str = None):
        self.transform = Transform(position, rotation, scale)
        self.children = []
        self.parent = None
        self.active = active
        self.name = name or type(self).__name__
        for child in children or []:
            self.add(child)

    def add(self, *children) -> 'SceneNode':
        """Appends children, detaching each from any previous parent."""
        for child in children:
            node = self
            while node is not None:
                if node is child:
                    raise ValueError(f"Adding '{child.name}' under '{self.name}' would create a cycle")
                node = node.parent
            if child.parent is not None:
                child.parent.children.remove(child)
            child.parent = self
            self.children.append(child)
        return self

    def remove(self, child: 'SceneNode') -> 'SceneNode':
        self.children.remove(child)
        child.parent = None
        return self

    def walk(self):
        """Yields active nodes in pre-order, skipping inactive subtrees."""
        if not self.active:
            return
        yield self
        for child in self.children:
            yield from child.walk()

    def translate(self, offset) -> 'SceneNode':
        self.transform.position = self.transform.position + np.array(offset, dtype=float)
        return self

    def rotate(self, axis, angle: float) -> 'SceneNode':
        self.transform.rotation = quaternion_multiply(quaternion(axis, angle), self.transform.rotation)
        return self

    def scale(self, factor) -> 'SceneNode':
        if isinstance(factor, (int, float)):
            factor = (factor, factor, factor)
        self.transform.scale = self.transform.scale * np.array(factor, dtype=float)
        return self

    def inverse_matrix(self) -> np.ndarray:
        return self.transform.inverse_matrix()

    def __or__(self, other): return Operation(OperationKind.UNION, children=[self, other])
    def __and__(self, other): return Operation(OperationKind.INTERSECTION, children=[self, other])

    def __sub__(self, other):
        # `other` is carved out of `self`.
        return Operation(OperationKind.SUBTRACTION, children=[other, self])

    def to_callable(self):
        """
        Returns a Python function that takes a NumPy array of points (N, 3)
        and returns an array of distances (N,).
        """
        from .cpu import get_callable
        return get_callable(self)

    def compile(self, **kwargs) -> str:
        """Compiles the subtree rooted here into a distance function."""
        from .compiler import SceneCompiler
        return SceneCompiler(**kwargs).compile(self)

    def export_shader(self, path: str, **kwargs):
        """Writes helper library code plus the generated distance function to `path`."""
        from .io import export_shader
        export_shader(self, path, **kwargs)

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r}, children={len(self.children)}, active={self.active})"


class Operation(SceneNode):
    """Interior node merging its children's distances with a boolean combinator."""
    node_type = NodeType.OPERATION

    def __init__(self, kind='union', children=None, distortion='none', repeat_period=(1, 1, 1), **kwargs):
        self.kind = _coerce_enum(OperationKind, kind)
        self.distortion = _coerce_enum(Distortion, distortion)
        self.repeat_period = np.array(repeat_period, dtype=float)
        super().__init__(children=children, **kwargs)

    @property
    def type_parameter(self) -> int:
        return int(self.kind)


class Shape(SceneNode):
    """Leaf node evaluating one primitive distance function."""
    node_type = NodeType.SHAPE

    def __init__(self, kind='sphere', bias: float = 1.0, **kwargs):
        self.kind = _coerce_enum(ShapeKind, kind)
        self.bias = float(bias)
        super().__init__(**kwargs)

    @property
    def type_parameter(self) -> int:
        return int(self.kind)

    @property
    def parameters(self) -> np.ndarray:
        """Kind-dependent parameter vector, derived from the transform on every read."""
        kind = self.kind
        t = self.transform
        if kind in (ShapeKind.PLANE, ShapeKind.FRACTURED_PLANE):
            return t.up()
        if kind == ShapeKind.SPHERE:
            return np.ones(3) * float(kind)
        if kind == ShapeKind.CUBE:
            return t.scale * 0.5
        if kind == ShapeKind.CYLINDER:
            return np.array([t.scale[0] * 0.5, t.scale[1], 1.0])
        return np.zeros(3)

    @property
    def uses_scale(self) -> bool:
        """Cube and cylinder extents already absorb the node's scale."""
        return self.kind not in (ShapeKind.CUBE, ShapeKind.CYLINDER)

    def effective_transform(self) -> Transform:
        return self.transform if self.uses_scale else self.transform.without_scale()


def collect_operations(root: SceneNode) -> list:
    """Flattened pre-order list of every active Operation under `root`."""
    if root is None:
        return []
    return [node for node in root.walk() if isinstance(node, Operation)]
