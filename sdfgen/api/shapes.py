import numpy as np
from .core import Shape, ShapeKind
from .dialects import Dialect, get_dialect
from .utils import Y, _format_float, quaternion_between

# Helper library sections each shape kind relies on.
SHAPE_DEPENDENCIES = {
    ShapeKind.CUBE: {'primitives'},
    ShapeKind.CYLINDER: {'primitives'},
    ShapeKind.FRACTURED_PLANE: {'primitives'},
}

# Kinds evaluated in their parent's space rather than through wsPos.
PLANAR_KINDS = {ShapeKind.PLANE, ShapeKind.FRACTURED_PLANE}
DISTANCE_KINDS = PLANAR_KINDS | {ShapeKind.SPHERE, ShapeKind.CUBE, ShapeKind.CYLINDER}

def plane_constants(shape: Shape):
    """Normal and offset of a plane through the shape's origin."""
    n = shape.parameters
    return n, float(np.dot(shape.transform.position, n))

def shape_expression(shape: Shape, position: str, dialect='glsl'):
    """
    Returns the distance expression of `shape` evaluated at the vec4
    binding `position`, or None if the kind has no distance function.

    Planes are evaluated in their parent's space, so `position` must be the
    parent operation's position for them. Every other kind expects the
    shape-local position.
    """
    d: Dialect = get_dialect(dialect)
    kind = shape.kind
    p = f"{position}.xyz"

    if kind == ShapeKind.PLANE:
        n, h = plane_constants(shape)
        # Planes are never biased.
        sign = '-' if h >= 0 else '+'
        return f"(dot({p}, {d.vector(n)}) {sign} {_format_float(abs(h))})"

    if kind == ShapeKind.FRACTURED_PLANE:
        n, h = plane_constants(shape)
        expr = f"sdFracturedPlane({p}, {d.vector(n)}, {_format_float(h)})"
    elif kind == ShapeKind.SPHERE:
        expr = f"(length({p}) - 0.5)"
    elif kind == ShapeKind.CUBE:
        expr = f"sdBox({p}, {d.vector(shape.parameters)})"
    elif kind == ShapeKind.CYLINDER:
        expr = f"sdCylinder({p}, {d.vector(shape.parameters[:2])})"
    else:
        return None

    if shape.bias != 1.0:
        expr = f"({expr} * {_format_float(shape.bias)})"
    return expr

# --- Factories ---

def sphere(radius: float = 0.5, **kwargs) -> Shape:
    """
    Creates a sphere centered at the node origin.

    The unit shape has radius 0.5; other radii are expressed through the
    node's scale.
    """
    return Shape(ShapeKind.SPHERE, scale=radius * 2.0, **kwargs)

def box(size=1.0, **kwargs) -> Shape:
    """
    Creates a box centered at the node origin.

    Args:
        size (float or tuple): Full edge lengths. A float creates a cube.
    """
    if isinstance(size, (int, float)):
        size = (size, size, size)
    return Shape(ShapeKind.CUBE, scale=tuple(size), **kwargs)

def cylinder(radius: float = 0.5, height: float = 2.0, **kwargs) -> Shape:
    """Creates a capped cylinder along the Y axis with total `height`."""
    return Shape(ShapeKind.CYLINDER, scale=(radius * 2.0, height / 2.0, radius * 2.0), **kwargs)

def _oriented(kind, normal, offset, kwargs) -> Shape:
    n = np.array(normal, dtype=float)
    n /= np.linalg.norm(n)
    kwargs.setdefault('position', n * offset)
    return Shape(kind, rotation=quaternion_between(Y, n), **kwargs)

def plane(normal=(0, 1, 0), offset: float = 0.0, **kwargs) -> Shape:
    """Creates the half-space below a plane with the given normal and offset along it."""
    return _oriented(ShapeKind.PLANE, normal, offset, kwargs)

def fractured_plane(normal=(0, 1, 0), offset: float = 0.0, **kwargs) -> Shape:
    """Creates a plane whose surface is broken into cells of jittered height."""
    return _oriented(ShapeKind.FRACTURED_PLANE, normal, offset, kwargs)

def mesh(**kwargs) -> Shape:
    """A mesh placeholder. Meshes carry no distance function and are skipped when compiling."""
    return Shape(ShapeKind.MESH, **kwargs)
