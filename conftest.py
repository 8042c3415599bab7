"""Load ``src/`` as the ``dmp_bbo`` package so tests run from a checkout."""

import importlib.util
import sys
from pathlib import Path

SRC_DIR = Path(__file__).parent / "src"


def _load_package(name: str, location: Path):
    # Drop stale copies from a previous session, subpackages included
    for module_name in [m for m in sys.modules if m == name or m.startswith(f"{name}.")]:
        del sys.modules[module_name]

    spec = importlib.util.spec_from_file_location(
        name, location / "__init__.py", submodule_search_locations=[str(location)]
    )
    package = importlib.util.module_from_spec(spec)
    sys.modules[name] = package
    spec.loader.exec_module(package)
    return package


_load_package("dmp_bbo", SRC_DIR)
