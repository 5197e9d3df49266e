import numpy as np

X, Y, Z = np.array([1.0, 0.0, 0.0]), np.array([0.0, 1.0, 0.0]), np.array([0.0, 0.0, 1.0])

IDENTITY_ROTATION = np.array([0.0, 0.0, 0.0, 1.0])

def _format_float(val) -> str:
    """Formats a number as the shortest shader float literal that round-trips at 32-bit precision."""
    text = np.format_float_positional(np.float32(val), unique=True, trim='0')
    if text == '-0.0':
        text = '0.0'
    return text

def _is_close(a, b, atol=1e-6) -> bool:
    return np.allclose(np.asarray(a, dtype=float), np.asarray(b, dtype=float), atol=atol)

def quaternion(axis, angle: float) -> np.ndarray:
    """Returns the (x, y, z, w) quaternion rotating `angle` radians about `axis`."""
    ax = np.array(axis, dtype=float)
    norm = np.linalg.norm(ax)
    if norm == 0:
        raise ValueError("Rotation axis cannot be zero vector")
    ax /= norm
    s = np.sin(angle / 2.0)
    return np.array([ax[0] * s, ax[1] * s, ax[2] * s, np.cos(angle / 2.0)])

def quaternion_between(a, b) -> np.ndarray:
    """Shortest-arc quaternion rotating direction `a` onto direction `b`."""
    a = np.array(a, dtype=float) / np.linalg.norm(a)
    b = np.array(b, dtype=float) / np.linalg.norm(b)
    d = np.dot(a, b)
    if d > 1.0 - 1e-9:
        return IDENTITY_ROTATION.copy()
    if d < -1.0 + 1e-9:
        # Any axis perpendicular to `a` works for a half turn.
        perp = np.cross(a, X)
        if np.linalg.norm(perp) < 1e-6:
            perp = np.cross(a, Y)
        return quaternion(perp, np.pi)
    axis = np.cross(a, b)
    q = np.array([axis[0], axis[1], axis[2], 1.0 + d])
    return q / np.linalg.norm(q)

def quaternion_multiply(q1, q2) -> np.ndarray:
    """Hamilton product q1 * q2 (apply q2 first, then q1)."""
    x1, y1, z1, w1 = q1
    x2, y2, z2, w2 = q2
    return np.array([
        w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
        w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
        w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
    ])

def rotation_matrix(q) -> np.ndarray:
    """3x3 rotation matrix of a (possibly unnormalized) quaternion."""
    q = np.array(q, dtype=float)
    n = np.linalg.norm(q)
    if n == 0:
        return np.eye(3)
    x, y, z, w = q / n
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
        [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
    ])

def trs_matrix(position, rotation, scale) -> np.ndarray:
    """Composes translation * rotation * scale into a 4x4 affine matrix."""
    m = np.eye(4)
    m[:3, :3] = rotation_matrix(rotation) @ np.diag(np.array(scale, dtype=float))
    m[:3, 3] = position
    return m
