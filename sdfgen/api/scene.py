import sys
import os
import time
import importlib.util
from pathlib import Path
from .core import SceneNode, collect_operations
from .compiler import SceneCompiler
from .buffer import build_node_buffer, MAX_NODES
from .io import assemble_shader, export_shader

try:
    from watchdog.observers import Observer
    from watchdog.events import FileSystemEventHandler
    WATCHDOG_AVAILABLE = True
except ImportError:
    WATCHDOG_AVAILABLE = False

class Scene:
    """
    A scene root together with the settings used to turn it into shader
    code or a node buffer.
    """
    def __init__(self, root: SceneNode = None, dialect='glsl', verbose: bool = False,
                 use_constant_table: bool = False, storage: str = 'flat', max_nodes: int = MAX_NODES):
        self.root = root
        self.dialect = dialect
        self.verbose = verbose
        self.use_constant_table = use_constant_table
        self.storage = storage
        self.max_nodes = max_nodes
        self.errors = []

    def _settings(self) -> dict:
        return {
            'dialect': self.dialect, 'verbose': self.verbose,
            'use_constant_table': self.use_constant_table, 'storage': self.storage,
        }

    def operations(self) -> list:
        return collect_operations(self.root)

    def compile(self) -> str:
        """Compiles the scene's distance function. Structural errors end up in `self.errors`."""
        compiler = SceneCompiler(**self._settings())
        source = compiler.compile(self.root, self.operations())
        self.errors = compiler.errors
        return source

    def shader(self) -> str:
        """The distance function preceded by the helper functions it calls."""
        return assemble_shader(self.root, self.operations(), **self._settings())

    def node_buffer(self):
        return build_node_buffer(self.root, self.max_nodes, self.dialect)

    def export_shader(self, path: str):
        export_shader(self.root, path, self.operations(), **self._settings())


class ShaderWatcher:
    """
    Re-runs a user script whenever it is saved and re-exports the shader.

    The script must define `main()` returning a SceneNode or a Scene.
    """
    def __init__(self, script_path: str, output_path: str, **settings):
        self.script_path = os.path.abspath(script_path)
        self.output_path = output_path
        self.settings = settings
        self.scene = None
        self.reload_pending = False
        self.observer = None

    def _load_scene(self):
        spec = importlib.util.spec_from_file_location("user_script", self.script_path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        if not (hasattr(module, 'main') and callable(module.main)):
            raise ValueError(f"'{Path(self.script_path).name}' does not define main()")
        result = module.main()
        if isinstance(result, Scene):
            return result
        if isinstance(result, SceneNode):
            return Scene(result, **self.settings)
        raise TypeError(f"main() returned {type(result).__name__}, expected a SceneNode or Scene")

    def reload(self) -> bool:
        """Rebuilds the scene from the script and rewrites the shader. Returns success."""
        print("INFO: Reloading...", file=sys.stderr)
        try:
            scene = self._load_scene()
            scene.export_shader(self.output_path)
        except Exception as e:
            print(f"ERROR: Reload failed: {e}", file=sys.stderr)
            return False
        self.scene = scene
        return True

    def _make_handler(self):
        class ChangeHandler(FileSystemEventHandler):
            def __init__(self, watcher): self.watcher = watcher
            def on_modified(self, event):
                if os.path.abspath(event.src_path) == self.watcher.script_path:
                    self.watcher.reload_pending = True
        return ChangeHandler(self)

    def start(self):
        if not WATCHDOG_AVAILABLE:
            raise RuntimeError("Watching requires the 'watchdog' package.")
        self.observer = Observer()
        self.observer.schedule(self._make_handler(), str(Path(self.script_path).parent), recursive=False)
        self.observer.daemon = True
        self.observer.start()
        print(f"INFO: Watching '{Path(self.script_path).name}' for changes...", file=sys.stderr)

    def stop(self):
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None

    def run(self, poll_interval: float = 0.1):
        """Exports once, then blocks re-exporting on every save until interrupted."""
        self.reload()
        self.start()
        try:
            while True:
                if self.reload_pending:
                    self.reload_pending = False
                    self.reload()
                time.sleep(poll_interval)
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()

def watch(script_path: str, output_path: str, **settings):
    """Main entry point for live shader export."""
    ShaderWatcher(script_path, output_path, **settings).run()
