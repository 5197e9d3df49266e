import pytest
import os
import textwrap
import numpy as np
from sdfgen import Scene, ShaderWatcher, sphere, box, union, assemble_shader, export_shader, get_library_definitions
from sdfgen.api.scene import WATCHDOG_AVAILABLE
from sdfgen.api.loader import load_library
from examples.basic import main as basic_main

SCRIPT = """
from sdfgen import sphere, box, union

def main():
    return union(sphere(0.5), box({size}))
"""

def write_script(path, size=1.0):
    path.write_text(textwrap.dedent(SCRIPT.format(size=size)))

# --- Library and assembly ---

def test_library_files_load():
    for dialect in ('glsl', 'hlsl'):
        sources = load_library(dialect)
        assert set(sources) == {'primitives', 'distortions'}

def test_library_order_and_selection():
    full = get_library_definitions('glsl')
    assert full.index("float sdBox") < full.index("opRepeatPolar")
    assert "opRepeat" not in get_library_definitions('glsl', {'primitives'})
    assert get_library_definitions('glsl', set()) == ""

def test_hlsl_library_uses_hlsl_builtins():
    code = get_library_definitions('hlsl')
    assert "sdfMod" in code
    assert "atan2" in code
    assert "vec3" not in code

def test_assemble_includes_only_needed_helpers(union_scene):
    code = assemble_shader(union_scene)
    assert "float sdBox" in code
    assert "opRepeat" not in code
    assert code.index("float sdBox") < code.index("float sdf_generated")

def test_assemble_without_helpers():
    code = assemble_shader(union(sphere()))
    assert code.startswith("float sdf_generated(vec3 p)")
    code = assemble_shader(union(box()), include_library=False)
    assert "float sdBox" not in code

def test_export_shader(tmp_path, union_scene, capsys):
    output_file = tmp_path / "scene.hlsl"
    export_shader(union_scene, str(output_file), dialect='hlsl')
    assert os.path.exists(output_file)
    content = output_file.read_text()
    assert "float sdf_generated(float3 p)" in content
    assert "float sdBox(float3 p, float3 b)" in content
    assert "SUCCESS" in capsys.readouterr().err

def test_node_export_shader(tmp_path):
    output_file = tmp_path / "node.glsl"
    union(sphere()).export_shader(str(output_file), verbose=True)
    assert "// union" in output_file.read_text()

# --- Scene ---

def test_scene_settings_flow_through():
    scene = Scene(union(sphere(), box()), dialect='hlsl', storage='array', max_nodes=16)
    assert "float4 pos[1];" in scene.compile()
    assert "float sdBox" in scene.shader()
    buffer, count = scene.node_buffer()
    assert len(buffer) == 16 and count == 3
    assert [op.name for op in scene.operations()] == ["Operation"]

def test_scene_records_errors():
    from sdfgen import SceneNode
    scene = Scene(union(sphere(), SceneNode(name="stray")))
    scene.compile()
    assert [e.node.name for e in scene.errors] == ["stray"]

def test_empty_scene():
    scene = Scene()
    assert "return 0.0;" in scene.compile()
    assert scene.node_buffer()[1] == 0

def test_basic_example():
    scene = Scene(basic_main())
    code = scene.shader()
    assert "max(dist1, " in code
    assert "dist0 = max(-dist0, dist1);" in code
    f = basic_main().to_callable()
    # The cylinder is drilled through the center.
    assert f(np.array([[0, 0, 0]]))[0] > 0
    assert f(np.array([[0.3, 0, 0.3]]))[0] < 0

# --- Watcher ---

def test_watcher_reload_exports(tmp_path):
    script = tmp_path / "scene_script.py"
    output = tmp_path / "out.glsl"
    write_script(script)
    watcher = ShaderWatcher(str(script), str(output))
    assert watcher.reload()
    assert "sdBox" in output.read_text()
    assert isinstance(watcher.scene, Scene)

    write_script(script, size=3.0)
    assert watcher.reload()
    assert "vec3(1.5, 1.5, 1.5)" in output.read_text()

def test_watcher_settings_apply(tmp_path):
    script = tmp_path / "scene_script.py"
    output = tmp_path / "out.hlsl"
    write_script(script)
    ShaderWatcher(str(script), str(output), dialect='hlsl').reload()
    assert "float3 p" in output.read_text()

def test_watcher_keeps_last_scene_on_failure(tmp_path, capsys):
    script = tmp_path / "scene_script.py"
    output = tmp_path / "out.glsl"
    write_script(script)
    watcher = ShaderWatcher(str(script), str(output))
    watcher.reload()
    good = output.read_text()
    scene = watcher.scene

    script.write_text("def main():\n    return 42\n")
    assert not watcher.reload()
    assert watcher.scene is scene
    assert output.read_text() == good
    assert "ERROR" in capsys.readouterr().err

    script.write_text("x = 1\n")
    assert not watcher.reload()

@pytest.mark.skipif(not WATCHDOG_AVAILABLE, reason="Requires watchdog.")
def test_watcher_handler_flags_script_changes(tmp_path):
    from watchdog.events import FileModifiedEvent
    script = tmp_path / "scene_script.py"
    write_script(script)
    watcher = ShaderWatcher(str(script), str(tmp_path / "out.glsl"))
    handler = watcher._make_handler()

    handler.on_modified(FileModifiedEvent(str(tmp_path / "other.py")))
    assert not watcher.reload_pending
    handler.on_modified(FileModifiedEvent(str(script)))
    assert watcher.reload_pending

@pytest.mark.skipif(not WATCHDOG_AVAILABLE, reason="Requires watchdog.")
def test_watcher_start_stop(tmp_path):
    script = tmp_path / "scene_script.py"
    write_script(script)
    watcher = ShaderWatcher(str(script), str(tmp_path / "out.glsl"))
    watcher.start()
    assert watcher.observer is not None
    watcher.stop()
    assert watcher.observer is None
