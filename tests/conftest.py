import pytest
import numpy as np
import os
import shutil
import subprocess
import tempfile
from sdfgen import sphere, box, union, subtraction
from sdfgen.api.io import assemble_shader

# Dependency checks
try:
    import moderngl
    import glfw
    HEADLESS_SUPPORTED = True
except ImportError:
    HEADLESS_SUPPORTED = False

GLSL_VALIDATOR = shutil.which("glslangValidator")
SKIP_GLSL = os.environ.get("SKIP_GLSL", "") == "1"

requires_glsl_validator = pytest.mark.skipif(
    not GLSL_VALIDATOR or SKIP_GLSL,
    reason="Requires glslangValidator."
)

@pytest.fixture
def union_scene():
    """Sphere at the origin and a unit half-extent cube at (2, 0, 0)."""
    return union(sphere(0.5), box(2.0, position=(2, 0, 0)))

@pytest.fixture
def subtraction_scene():
    return subtraction(sphere(0.5), box(4.0))

@pytest.fixture(scope="session")
def validate_glsl():
    def _validator(root, **kwargs):
        code = assemble_shader(root, dialect='glsl', **kwargs)
        shader = f"""
        #version 430 core
        out vec4 f_color;
        {code}
        void main() {{
            f_color = vec4(sdf_generated(vec3(0.0)));
        }}
        """
        with tempfile.NamedTemporaryFile(suffix=".frag", mode="w", delete=False) as f:
            f.write(shader)
            path = f.name
        try:
            result = subprocess.run([GLSL_VALIDATOR, "-S", "frag", path], capture_output=True, text=True)
        finally:
            os.remove(path)
        if result.returncode != 0:
            raise AssertionError(f"GLSL Validation Failed:\n{result.stdout}{result.stderr}\nSOURCE:\n{code}")
    return _validator

@pytest.fixture(scope="session")
def headless_ctx():
    """A hidden OpenGL 4.3 context for compute-shader evaluation of generated code."""
    if not HEADLESS_SUPPORTED:
        pytest.skip("moderngl/glfw not installed.")
    if not glfw.init():
        pytest.skip("Failed to initialize GLFW.")
    glfw.window_hint(glfw.VISIBLE, False)
    glfw.window_hint(glfw.CONTEXT_VERSION_MAJOR, 4)
    glfw.window_hint(glfw.CONTEXT_VERSION_MINOR, 3)
    glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_CORE_PROFILE)
    window = glfw.create_window(1, 1, "sdfgen tests", None, None)
    if not window:
        glfw.terminate()
        pytest.skip("Could not create a hidden OpenGL 4.3 window.")
    glfw.make_context_current(window)
    try:
        ctx = moderngl.create_context()
    except Exception as e:
        glfw.terminate()
        pytest.skip(f"Failed to create moderngl context: {e}")
    yield ctx
    glfw.terminate()

@pytest.fixture
def gpu_evaluate(headless_ctx):
    """Runs the generated GLSL distance function over a batch of points."""
    def _evaluate(root, points, **kwargs):
        code = assemble_shader(root, dialect='glsl', **kwargs)
        program = headless_ctx.compute_shader(f"""
        #version 430
        layout(local_size_x=64) in;
        layout(std430, binding=0) buffer InputPoints {{ vec4 points[]; }};
        layout(std430, binding=1) buffer OutputDists {{ float dists[]; }};
        {code}
        void main() {{
            uint gid = gl_GlobalInvocationID.x;
            if (gid >= uint(points.length())) return;
            dists[gid] = sdf_generated(points[gid].xyz);
        }}
        """)
        points = np.array(points, dtype='f4')
        padded = np.zeros((len(points), 4), dtype='f4')
        padded[:, :3] = points
        in_buf = headless_ctx.buffer(padded.tobytes())
        out_buf = headless_ctx.buffer(reserve=len(points) * 4)
        in_buf.bind_to_storage_buffer(0)
        out_buf.bind_to_storage_buffer(1)
        program.run(group_x=(len(points) + 63) // 64)
        result = np.frombuffer(out_buf.read(), dtype='f4').copy()
        in_buf.release()
        out_buf.release()
        program.release()
        return result
    return _evaluate
