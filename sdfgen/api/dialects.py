import numpy as np
from .utils import _format_float

class Dialect:
    """
    Surface syntax of one shading language.

    Only type names, literals, matrix-vector multiplication and constant
    array declarations differ between dialects; every other piece of
    generated code is shared.
    """
    def __init__(self, name: str, float_type: str, vec2: str, vec3: str, vec4: str, mat4: str,
                 column_major: bool, mul_template: str, const_array_template: str):
        self.name = name
        self.float_type = float_type
        self.vec2 = vec2
        self.vec3 = vec3
        self.vec4 = vec4
        self.mat4 = mat4
        self.column_major = column_major
        self.mul_template = mul_template
        self.const_array_template = const_array_template

    def vector_type(self, size: int) -> str:
        return {1: self.float_type, 2: self.vec2, 3: self.vec3, 4: self.vec4}[size]

    def vector(self, values) -> str:
        """Float literal for one value, vecN constructor for 2-4 values."""
        components = [_format_float(v) for v in np.array(values, dtype=float).flatten()]
        if len(components) == 1:
            return components[0]
        return f"{self.vector_type(len(components))}({', '.join(components)})"

    def matrix(self, m) -> str:
        """4x4 matrix literal; `m` is given in row-major (math) order."""
        m = np.array(m, dtype=float)
        if self.column_major:
            m = m.T
        components = ", ".join(_format_float(v) for v in m.flatten())
        return f"{self.mat4}({components})"

    def mul(self, matrix_expr: str, vector_expr: str) -> str:
        return self.mul_template.format(m=matrix_expr, v=vector_expr)

    def const_array(self, type_name: str, name: str, items) -> str:
        return self.const_array_template.format(type=type_name, name=name, size=len(items), items=", ".join(items))

    def __repr__(self):
        return f"Dialect({self.name!r})"


GLSL = Dialect(
    'glsl', 'float', 'vec2', 'vec3', 'vec4', 'mat4',
    column_major=True,
    mul_template="({m} * {v})",
    const_array_template="const {type} {name}[{size}] = {type}[{size}]({items});",
)

HLSL = Dialect(
    'hlsl', 'float', 'float2', 'float3', 'float4', 'float4x4',
    column_major=False,
    mul_template="mul({m}, {v})",
    const_array_template="static const {type} {name}[{size}] = {{ {items} }};",
)

DIALECTS = {'glsl': GLSL, 'hlsl': HLSL}

def get_dialect(dialect) -> Dialect:
    """Resolves a dialect name ('glsl' or 'hlsl') or passes a Dialect through."""
    if isinstance(dialect, Dialect):
        return dialect
    key = str(dialect).lower()
    if key not in DIALECTS:
        raise ValueError(f"Unknown shading dialect: {dialect}")
    return DIALECTS[key]
