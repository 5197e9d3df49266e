import sys
from .compiler import SceneCompiler
from .loader import get_library_definitions

def assemble_shader(root, operations=None, include_library: bool = True, **kwargs) -> str:
    """
    Compiles `root` and prepends the helper functions the generated code
    depends on, giving a block that can be pasted into a larger shader.
    """
    compiler = SceneCompiler(**kwargs)
    function_code = compiler.compile(root, operations)
    if not include_library:
        return function_code
    library_code = get_library_definitions(compiler.dialect, compiler.dependencies)
    if not library_code:
        return function_code
    return library_code + "\n\n" + function_code

def export_shader(root, path: str, operations=None, **kwargs):
    """Writes the assembled distance function to `path`."""
    shader_code = assemble_shader(root, operations, **kwargs)
    with open(path, 'w') as f:
        f.write(shader_code)
    print(f"SUCCESS: Shader exported to '{path}'.", file=sys.stderr)
