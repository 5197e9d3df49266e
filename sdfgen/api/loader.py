from pathlib import Path
from functools import lru_cache
from .dialects import get_dialect

# dialect name -> {file stem -> source}
LIBRARY_SOURCES = {}

# Order in which library files are concatenated.
LIBRARY_ORDER = [
    'primitives',
    'distortions',
]

def load_library(dialect_name: str) -> dict:
    """Finds and loads all helper files of one dialect into a dictionary."""
    if dialect_name in LIBRARY_SOURCES:
        return LIBRARY_SOURCES[dialect_name]

    sources = {}
    library_dir = Path(__file__).parent.parent / dialect_name
    if library_dir.exists():
        for path in library_dir.glob(f'*.{dialect_name}'):
            with open(path, 'r') as f:
                sources[path.stem] = f.read()
    LIBRARY_SOURCES[dialect_name] = sources
    return sources

@lru_cache(maxsize=None)
def _definitions(dialect_name: str, required_files: frozenset) -> str:
    sources = load_library(dialect_name)

    def sort_key(name):
        try:
            return LIBRARY_ORDER.index(name)
        except ValueError:
            return len(LIBRARY_ORDER) + 1

    ordered = sorted(required_files, key=lambda name: (sort_key(name), name))
    return "\n\n".join(sources[stem] for stem in ordered if stem in sources)

def get_library_definitions(dialect='glsl', required_files=None) -> str:
    """
    Returns the helper functions generated code may call, in dependency
    order. With no `required_files`, the whole library is returned.
    """
    d = get_dialect(dialect)
    if required_files is None:
        required_files = load_library(d.name).keys()
    return _definitions(d.name, frozenset(required_files))
