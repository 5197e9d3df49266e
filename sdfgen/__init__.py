from .api.core import (
    SceneNode, Operation, Shape, Transform,
    OperationKind, ShapeKind, Distortion, NodeType,
    StructuralError, MalformedSceneError, collect_operations,
)
from .api.utils import X, Y, Z, quaternion
from .api.shapes import sphere, box, cylinder, plane, fractured_plane, mesh, shape_expression
from .api.operations import union, subtraction, intersection, Group
from .api.dialects import Dialect, GLSL, HLSL, get_dialect
from .api.compiler import SceneCompiler, compile_sdf
from .api.buffer import FlatBufferEmitter, FlatNodeRecord, build_node_buffer, MAX_NODES, NODE_DTYPE
from .api.cpu import evaluate
from .api.loader import get_library_definitions
from .api.io import assemble_shader, export_shader
from .api.scene import Scene, ShaderWatcher, watch
