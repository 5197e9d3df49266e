import numpy as np
from .core import Operation, OperationKind, Distortion
from .dialects import get_dialect
from .utils import _format_float

# Accumulator is always the left operand; subtraction is not symmetric.
COMBINATORS = {
    OperationKind.UNION: lambda a, b: f"min({a}, {b})",
    OperationKind.SUBTRACTION: lambda a, b: f"max(-{a}, {b})",
    OperationKind.INTERSECTION: lambda a, b: f"max({a}, {b})",
}

# Components left to a single-axis polar wrap or discrete rotation.
_PLANE_OF_AXIS = {0: 'yz', 1: 'xz', 2: 'xy'}

_HELPER_DISTORTIONS = {
    Distortion.REPEAT, Distortion.REPEAT_X, Distortion.REPEAT_Y, Distortion.REPEAT_Z,
    Distortion.REPEAT_POLAR_X, Distortion.REPEAT_POLAR_Y, Distortion.REPEAT_POLAR_Z,
    Distortion.ROTATE_DISCRETE_X, Distortion.ROTATE_DISCRETE_Y, Distortion.ROTATE_DISCRETE_Z,
}

def combine(kind: OperationKind, accumulator: str, value: str) -> str:
    return COMBINATORS[kind](accumulator, value)

def distortion_dependencies(distortion: Distortion) -> set:
    return {'distortions'} if distortion in _HELPER_DISTORTIONS else set()

def distortion_statements(distortion: Distortion, position: str, period, dialect='glsl') -> list:
    """
    Returns the statements rewriting the vec4 binding `position` in place.

    Periodic variants leave zero-period axes untouched; a polar wrap with
    fewer than one repetition is a no-op.
    """
    d = get_dialect(dialect)
    period = np.array(period, dtype=float)
    p = position
    axis = distortion.axis

    if distortion == Distortion.NONE:
        return []

    if distortion == Distortion.REPEAT:
        axes = [i for i in range(3) if period[i] != 0]
        if not axes:
            return []
        sw = ''.join('xyz'[i] for i in axes)
        return [f"{p}.{sw} = opRepeat({p}.{sw}, {d.vector(period[axes])});"]

    if distortion in (Distortion.REPEAT_X, Distortion.REPEAT_Y, Distortion.REPEAT_Z):
        c = period[axis]
        if c == 0:
            return []
        sw = 'xyz'[axis]
        return [f"{p}.{sw} = opRepeat({p}.{sw}, {_format_float(c)});"]

    if distortion in (Distortion.REPEAT_POLAR_X, Distortion.REPEAT_POLAR_Y, Distortion.REPEAT_POLAR_Z):
        n = period[axis]
        if n < 1:
            return []
        sw = _PLANE_OF_AXIS[axis]
        return [f"{p}.{sw} = opRepeatPolar({p}.{sw}, {_format_float(n)});"]

    if distortion == Distortion.MIRROR:
        return [f"{p}.xyz = abs({p}.xyz);"]
    if distortion == Distortion.MIRROR_XZ:
        return [f"{p}.xz = abs({p}.xz);"]
    if distortion in (Distortion.MIRROR_X, Distortion.MIRROR_Y, Distortion.MIRROR_Z):
        sw = 'xyz'[axis]
        return [f"{p}.{sw} = abs({p}.{sw});"]

    if distortion in (Distortion.ROTATE_DISCRETE_X, Distortion.ROTATE_DISCRETE_Y, Distortion.ROTATE_DISCRETE_Z):
        sw = _PLANE_OF_AXIS[axis]
        return [f"{p}.{sw} = opRotateDiscrete({p}.{sw});"]

    if distortion in (Distortion.FLIP_X, Distortion.FLIP_Y, Distortion.FLIP_Z):
        sw = 'xyz'[axis]
        return [f"{p}.{sw} = -{p}.{sw};"]

    raise ValueError(f"Unknown distortion: {distortion}")

# --- Factories ---

def union(*children, **kwargs) -> Operation:
    return Operation('union', children=list(children), **kwargs)

def subtraction(*children, **kwargs) -> Operation:
    """Folds left to right, carving the running result out of each following child."""
    return Operation('subtraction', children=list(children), **kwargs)

def intersection(*children, **kwargs) -> Operation:
    return Operation('intersection', children=list(children), **kwargs)

def Group(*children):
    """
    Creates a union of multiple nodes.
    Acts as a helper factory for Operation.
    """
    return Operation('union', children=list(children))
