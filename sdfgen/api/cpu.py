import numpy as np
from .core import Operation, Shape, ShapeKind, OperationKind, Distortion
from .shapes import plane_constants, PLANAR_KINDS

# NumPy mirrors of the helper library. Points are (N, 3) or (N, 4) arrays.

def _mod(x, y):
    """GLSL-style mod (floored, result takes the sign of y)."""
    return x - y * np.floor(x / y)

def _fract(x):
    return x - np.floor(x)

def _repeat(x, c):
    return _mod(x + 0.5 * c, c) - 0.5 * c

def _repeat_polar(q, n):
    angle = 2.0 * np.pi / n
    a = np.arctan2(q[:, 1], q[:, 0]) + angle * 0.5
    r = np.linalg.norm(q, axis=1)
    a = _mod(a, angle) - angle * 0.5
    return np.stack([np.cos(a) * r, np.sin(a) * r], axis=1)

def _rotate_discrete(q):
    q = q.copy()
    neg_x = q[:, 0] < 0.0
    q[neg_x] = -q[neg_x]
    neg_y = q[:, 1] < 0.0
    q[neg_y] = np.stack([-q[neg_y, 1], q[neg_y, 0]], axis=1)
    return q

def _sd_box(p, b):
    q = np.abs(p) - b
    return np.linalg.norm(np.maximum(q, 0.0), axis=1) + np.minimum(np.max(q, axis=1), 0.0)

def _sd_cylinder(p, h):
    d = np.abs(np.stack([np.linalg.norm(p[:, [0, 2]], axis=1), p[:, 1]], axis=1)) - h
    return np.minimum(np.max(d, axis=1), 0.0) + np.linalg.norm(np.maximum(d, 0.0), axis=1)

def _sd_fractured_plane(p, n, h):
    cell = np.floor(p * 2.0)
    crack = _fract((cell @ np.array([0.1031, 0.1030, 0.0973])) * 17.0)
    return p @ n - h + (crack - 0.5) * 0.1

_PLANE_OF_AXIS = {0: [1, 2], 1: [0, 2], 2: [0, 1]}

def _distort(p, distortion: Distortion, period) -> np.ndarray:
    if distortion == Distortion.NONE:
        return p
    q = p.copy()
    axis = distortion.axis

    if distortion == Distortion.REPEAT:
        m = period != 0
        q[:, :3][:, m] = _repeat(p[:, :3][:, m], period[m])
    elif distortion in (Distortion.REPEAT_X, Distortion.REPEAT_Y, Distortion.REPEAT_Z):
        if period[axis] != 0:
            q[:, axis] = _repeat(p[:, axis], period[axis])
    elif distortion in (Distortion.REPEAT_POLAR_X, Distortion.REPEAT_POLAR_Y, Distortion.REPEAT_POLAR_Z):
        if period[axis] >= 1:
            cols = _PLANE_OF_AXIS[axis]
            q[:, cols] = _repeat_polar(p[:, cols], period[axis])
    elif distortion == Distortion.MIRROR:
        q[:, :3] = np.abs(p[:, :3])
    elif distortion == Distortion.MIRROR_XZ:
        q[:, [0, 2]] = np.abs(p[:, [0, 2]])
    elif distortion in (Distortion.MIRROR_X, Distortion.MIRROR_Y, Distortion.MIRROR_Z):
        q[:, axis] = np.abs(p[:, axis])
    elif distortion in (Distortion.ROTATE_DISCRETE_X, Distortion.ROTATE_DISCRETE_Y, Distortion.ROTATE_DISCRETE_Z):
        cols = _PLANE_OF_AXIS[axis]
        q[:, cols] = _rotate_discrete(p[:, cols])
    elif distortion in (Distortion.FLIP_X, Distortion.FLIP_Y, Distortion.FLIP_Z):
        q[:, axis] = -p[:, axis]
    return q

_COMBINE = {
    OperationKind.UNION: lambda a, b: np.minimum(a, b),
    OperationKind.SUBTRACTION: lambda a, b: np.maximum(-a, b),
    OperationKind.INTERSECTION: lambda a, b: np.maximum(a, b),
}

def _shape_distance(shape: Shape, p):
    kind = shape.kind
    if kind in PLANAR_KINDS:
        n, h = plane_constants(shape)
        if kind == ShapeKind.PLANE:
            return p[:, :3] @ n - h
        d = _sd_fractured_plane(p[:, :3], n, h)
    else:
        local = p @ shape.effective_transform().inverse_matrix().T
        if kind == ShapeKind.SPHERE:
            d = np.linalg.norm(local[:, :3], axis=1) - 0.5
        elif kind == ShapeKind.CUBE:
            d = _sd_box(local[:, :3], shape.parameters)
        elif kind == ShapeKind.CYLINDER:
            d = _sd_cylinder(local[:, :3], shape.parameters[:2])
        else:
            return None
    return d * shape.bias

def _operation_distance(node: Operation, p):
    local = p @ node.inverse_matrix().T
    local = _distort(local, node.distortion, node.repeat_period)

    result = None
    for child in node.children:
        if not child.active:
            continue
        if isinstance(child, Operation):
            d = _operation_distance(child, local)
        elif isinstance(child, Shape):
            d = _shape_distance(child, local)
        else:
            continue
        if d is None:
            continue
        result = d if result is None else _COMBINE[node.kind](result, d)
    return result

def evaluate(root, points) -> np.ndarray:
    """
    Evaluates the scene at `points` (N, 3) with the same semantics as the
    generated shader code. Trees that produce no distance evaluate to 0.
    """
    points = np.atleast_2d(np.array(points, dtype=float))
    p = np.hstack([points, np.ones((len(points), 1))])
    result = None
    if root is not None and root.active and isinstance(root, Operation):
        result = _operation_distance(root, p)
    if result is None:
        return np.zeros(len(points))
    return result

def get_callable(node):
    """Returns a Python callable evaluating `node` on NumPy point arrays."""
    return lambda points: evaluate(node, points)
