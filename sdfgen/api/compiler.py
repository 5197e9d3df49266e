import sys
import numpy as np
from .core import (
    Operation, Shape, StructuralError, MalformedSceneError, collect_operations,
)
from .dialects import get_dialect
from .operations import combine, distortion_statements, distortion_dependencies
from .shapes import shape_expression, SHAPE_DEPENDENCIES, PLANAR_KINDS, DISTANCE_KINDS

STORAGE_MODES = ('flat', 'array')
WORKING_POSITION = 'wsPos'
MATRIX_TABLE = 'sdf_matrices'
VECTOR_TABLE = 'sdf_vectors'


class ConstantTable:
    """Literals hoisted out of the function body. Identical literals share an entry."""
    def __init__(self, name: str):
        self.name = name
        self.items = []
        self._index = {}

    def reference(self, literal: str) -> str:
        if literal not in self._index:
            self._index[literal] = len(self.items)
            self.items.append(literal)
        return f"{self.name}[{self._index[literal]}]"

    def __len__(self):
        return len(self.items)


class CompileContext:
    """Manages the state of a single compilation of a scene tree."""
    def __init__(self, compiler: 'SceneCompiler', slot_count: int):
        self.compiler = compiler
        self.dialect = compiler.dialect
        self.statements = []
        self.dependencies = set()
        self.matrices = ConstantTable(MATRIX_TABLE)
        self.vectors = ConstantTable(VECTOR_TABLE)
        self.visited = np.zeros(slot_count, dtype=bool)
        self.uses_working_position = False

    def _indent(self, depth: int) -> str:
        return '    ' * (depth + 1) if self.compiler.verbose else ''

    def add_statement(self, line: str, depth: int = 0):
        self.statements.append(self._indent(depth) + line)

    def add_comment(self, text: str, depth: int = 0):
        if self.compiler.verbose:
            self.statements.append(self._indent(depth) + f"// {text}")

    def matrix_literal(self, m) -> str:
        literal = self.dialect.matrix(m)
        if self.compiler.use_constant_table:
            return self.matrices.reference(literal)
        return literal

    def vector_literal(self, v) -> str:
        literal = self.dialect.vector(v)
        if self.compiler.use_constant_table:
            return self.vectors.reference(literal)
        return literal


class SceneCompiler:
    """
    Compiles a scene tree into a straight-line signed distance function.

    Every Operation owns a slot holding a vec4 position and a float
    distance. Positions flow from parent to child and are rewritten by the
    node's transform and distortion; distances flow back up through the
    operation's combinator.

    Args:
        dialect: 'glsl' or 'hlsl'.
        verbose: Indent by tree depth and annotate with comments.
        use_constant_table: Hoist matrix and vector literals into shared
            constant arrays instead of inlining them.
        storage: 'flat' gives every slot its own `posN`/`distN` variables,
            'array' indexes `pos[N]`/`dist[N]` arrays.
        strict: Raise MalformedSceneError after compiling if any node
            had to be skipped.
        function_name: Name of the generated function.
    """
    def __init__(self, dialect='glsl', verbose: bool = False, use_constant_table: bool = False,
                 storage: str = 'flat', strict: bool = False, function_name: str = 'sdf_generated'):
        self.dialect = get_dialect(dialect)
        storage = str(storage).lower()
        if storage not in STORAGE_MODES:
            raise ValueError(f"Unknown storage mode: {storage}")
        self.storage = storage
        self.verbose = verbose
        self.use_constant_table = use_constant_table
        self.strict = strict
        self.function_name = function_name
        self.errors = []
        self.dependencies = set()
        self._slots = {}

    def position_binding(self, slot: int) -> str:
        return f"pos[{slot}]" if self.storage == 'array' else f"pos{slot}"

    def distance_binding(self, slot: int) -> str:
        return f"dist[{slot}]" if self.storage == 'array' else f"dist{slot}"

    def compile(self, root, operations=None) -> str:
        """
        Returns the source of `float sdf_generated(vec3 p)` for `root`.

        `operations` is the flattened list of Operation nodes that defines
        slot numbering; it defaults to a pre-order walk of `root`.
        """
        if operations is None:
            operations = collect_operations(root)
        operations = list(operations)

        self.errors = []
        self._slots = {id(op): slot for slot, op in enumerate(operations)}
        ctx = CompileContext(self, len(operations))

        root_slot, result = None, None
        if root is not None and root.active:
            if isinstance(root, Operation):
                root_slot = self._slots.get(id(root))
                result = self._compile_operation(ctx, root, 0, None)
            elif not isinstance(root, Shape):
                self._report(root, "root is neither an Operation nor a Shape")

        source = self._assemble(ctx, len(operations), root_slot, result)
        self.dependencies = ctx.dependencies

        if self.errors:
            if self.strict:
                raise MalformedSceneError(self.errors, source)
            for error in self.errors:
                print(f"WARNING: Skipped malformed node {error}", file=sys.stderr)
        return source

    def _report(self, node, message: str):
        self.errors.append(StructuralError(node, message))

    def _fold_transform(self, ctx: CompileContext, transform, source: str, target: str, depth: int) -> str:
        """
        Emits the cheapest assignment of `target` from `source` under the
        inverse of `transform`, and returns the binding holding the result.
        An identity transform emits nothing and returns `source`. A singular
        transform assigns the zero vector, matching its all-zero inverse.
        """
        if transform.is_identity():
            return source

        inverse = transform.inverse_matrix()
        if not inverse.any():
            # A zero scale axis collapses the whole space onto the origin.
            expr = ctx.vector_literal(np.zeros(4))
        elif transform.has_rotation():
            expr = self.dialect.mul(ctx.matrix_literal(inverse), source)
        else:
            expr = source
            if transform.has_scale():
                expr = f"{expr} * {ctx.vector_literal(np.append(np.diag(inverse)[:3], 1.0))}"
            if transform.has_translation():
                offset = ctx.vector_literal(np.append(-inverse[:3, 3], 0.0))
                expr = f"({expr}) - {offset}" if transform.has_scale() else f"{expr} - {offset}"

        ctx.add_statement(f"{target} = {expr};", depth)
        return target

    def _compile_operation(self, ctx: CompileContext, node: Operation, depth: int, parent_position):
        """Compiles `node` into its slot and returns its distance binding, or None."""
        slot = self._slots.get(id(node))
        if slot is None:
            self._report(node, "operation is missing from the operation list")
            return None
        if ctx.visited[slot]:
            self._report(node, f"operation in slot {slot} is reached more than once")
            return None
        ctx.visited[slot] = True

        own = self.position_binding(slot)
        distance = self.distance_binding(slot)
        ctx.add_comment(f"{node.kind.name.lower()} '{node.name}' (slot {slot})", depth)

        # The root reads the position seeded into its own slot.
        source = own if parent_position is None else parent_position
        position = self._fold_transform(ctx, node.transform, source, own, depth)

        statements = distortion_statements(node.distortion, own, node.repeat_period, self.dialect)
        if statements:
            if position != own:
                ctx.add_statement(f"{own} = {position};", depth)
                position = own
            ctx.dependencies.update(distortion_dependencies(node.distortion))
            for line in statements:
                ctx.add_statement(line, depth)

        first, carried = True, None
        for child in node.children:
            if not child.active:
                continue
            if isinstance(child, Operation):
                value = self._compile_operation(ctx, child, depth + 1, position)
                if value is None:
                    continue
                if first:
                    carried, first = value, False
                    continue
            elif isinstance(child, Shape):
                value = self._compile_shape(ctx, child, position, depth + 1)
                if value is None:
                    continue
                if first:
                    ctx.add_statement(f"{distance} = {value};", depth)
                    first = False
                    continue
            else:
                self._report(child, "node is neither an Operation nor a Shape")
                continue

            accumulator = distance if carried is None else carried
            carried = None
            ctx.add_statement(f"{distance} = {combine(node.kind, accumulator, value)};", depth)

        if carried is not None:
            ctx.add_statement(f"{distance} = {carried};", depth)

        return None if first else distance

    def _compile_shape(self, ctx: CompileContext, shape: Shape, parent_position: str, depth: int):
        if shape.kind not in DISTANCE_KINDS:
            print(f"WARNING: {shape.kind.name.lower()} shape '{shape.name}' has no distance function; skipped.", file=sys.stderr)
            return None

        ctx.add_comment(f"{shape.kind.name.lower()} '{shape.name}'", depth)
        if shape.kind in PLANAR_KINDS:
            position = parent_position
        else:
            position = self._fold_transform(ctx, shape.effective_transform(), parent_position, WORKING_POSITION, depth)
            if position == WORKING_POSITION:
                ctx.uses_working_position = True

        ctx.dependencies.update(SHAPE_DEPENDENCIES.get(shape.kind, set()))
        return shape_expression(shape, position, self.dialect)

    def _assemble(self, ctx: CompileContext, slot_count: int, root_slot, result) -> str:
        d = self.dialect
        indent = '    ' if self.verbose else ''
        lines = []

        if len(ctx.matrices):
            lines.append(d.const_array(d.mat4, MATRIX_TABLE, ctx.matrices.items))
        if len(ctx.vectors):
            lines.append(d.const_array(d.vec4, VECTOR_TABLE, ctx.vectors.items))

        lines.append(f"{d.float_type} {self.function_name}({d.vec3} p)")
        lines.append("{")

        seed = f"{d.vec4}(p, 1.0)"
        if self.verbose:
            lines.append(f"{indent}// {slot_count} operation slot(s)")
        if self.storage == 'array':
            if slot_count:
                lines.append(f"{indent}{d.vec4} pos[{slot_count}];")
                lines.append(f"{indent}{d.float_type} dist[{slot_count}];")
            if root_slot is not None:
                lines.append(f"{indent}pos[{root_slot}] = {seed};")
        else:
            for slot in range(slot_count):
                if slot == root_slot:
                    lines.append(f"{indent}{d.vec4} pos{slot} = {seed};")
                else:
                    lines.append(f"{indent}{d.vec4} pos{slot};")
            for slot in range(slot_count):
                lines.append(f"{indent}{d.float_type} dist{slot};")
        if ctx.uses_working_position:
            lines.append(f"{indent}{d.vec4} {WORKING_POSITION};")

        lines.extend(ctx.statements)
        lines.append(f"{indent}return {result if result is not None else '0.0'};")
        lines.append("}")
        return "\n".join(lines) + "\n"


def compile_sdf(root, operations=None, **kwargs) -> str:
    """Compiles `root` with a fresh SceneCompiler configured by `kwargs`."""
    return SceneCompiler(**kwargs).compile(root, operations)
