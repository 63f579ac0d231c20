import argparse
import importlib.util
import json
import sys
from collections.abc import Callable
from pathlib import Path
from types import ModuleType

import pytest

GENERATOR_DIR = Path(__file__).resolve().parent.parent
if str(GENERATOR_DIR) not in sys.path:
    sys.path.insert(0, str(GENERATOR_DIR))

import visitor_gen  # noqa: E402

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def arithmetic_schema() -> Path:
    return FIXTURES_DIR / "arithmetic-node-types.json"


@pytest.fixture
def fizzbuzz_schema() -> Path:
    return FIXTURES_DIR / "fizzbuzz-node-types.json"


@pytest.fixture
def existing_paths(tmp_path: Path, fizzbuzz_schema: Path) -> dict[str, Path]:
    node_types = tmp_path / "node-types.json"
    node_types.write_bytes(fizzbuzz_schema.read_bytes())
    return {
        "node_types": node_types,
        "output": tmp_path / "out" / "visitor.py",
    }


@pytest.fixture
def missing_path(tmp_path: Path) -> Path:
    return tmp_path / "missing"


@pytest.fixture
def make_args(existing_paths: dict[str, Path]) -> Callable[..., argparse.Namespace]:
    def _make_args(**overrides: object) -> argparse.Namespace:
        base_args: dict[str, object] = {
            "node_types": existing_paths["node_types"],
            "output": None,
            "class_name": None,
            "list_kinds": False,
            "filter": None,
        }
        base_args.update(overrides)
        return argparse.Namespace(**base_args)

    return _make_args


@pytest.fixture
def make_schema() -> Callable[[list[object]], bytes]:
    def _make_schema(entries: list[object]) -> bytes:
        return json.dumps(entries).encode("utf-8")

    return _make_schema


@pytest.fixture
def load_visitor_module(tmp_path: Path) -> Callable[..., ModuleType]:
    """Generate a visitor from a schema file and import it from tmp_path."""

    def _load_visitor_module(schema: Path, class_name: str = "Visitor") -> ModuleType:
        source = visitor_gen.generate_visitor_source(
            schema.read_bytes(), class_name=class_name, source_label=schema.name
        )
        module_name = schema.stem.replace("-", "_") + "_visitor"
        module_path = tmp_path / f"{module_name}.py"
        module_path.write_text(source, encoding="utf-8")

        spec = importlib.util.spec_from_file_location(module_name, module_path)
        assert spec is not None and spec.loader is not None
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    return _load_visitor_module
