"""Tests for the package metadata in pyproject.toml."""

import ast
import re
import sys
import tomllib
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
PACKAGE_DIR = ROOT / "src" / "butterflyeffect"

# import name -> distribution name, where they differ
DISTRIBUTIONS = {"vtkmodules": "vtk"}


@pytest.fixture(scope="module")
def project():
    with open(ROOT / "pyproject.toml", "rb") as f:
        return tomllib.load(f)["project"]


def _requirement_names(requirements):
    return {re.split(r"[<>=!~\[; ]", req, maxsplit=1)[0].lower() for req in requirements}


def _third_party_imports():
    names = set()
    for path in PACKAGE_DIR.rglob("*.py"):
        tree = ast.parse(path.read_text(encoding="utf-8"))
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                names.update(alias.name.split(".")[0] for alias in node.names)
            elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
                names.add(node.module.split(".")[0])
    return {n for n in names if n not in sys.stdlib_module_names and n not in ("butterflyeffect", "__future__")}


def test_every_import_is_declared(project):
    declared = _requirement_names(project["dependencies"])
    for name in sorted(_third_party_imports()):
        assert DISTRIBUTIONS.get(name, name).lower() in declared, f"{name} is imported but not declared"


def test_long_description_is_a_readme(project):
    readme = project.get("readme")
    assert readme is None or Path(readme).name.upper().startswith("README")


def test_gui_entry_point(project):
    assert project["gui-scripts"]["butterflyeffect"] == "butterflyeffect.main:main"


def test_pytest_in_test_extra(project):
    assert "pytest" in _requirement_names(project["optional-dependencies"]["test"])
