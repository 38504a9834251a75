# tests/test_imports.py
"""
Every module must import cleanly: class bodies evaluate their method
annotations at import time on the interpreters we support.
"""
import importlib
from pathlib import Path

import pytest

PACKAGE_ROOT = Path(__file__).resolve().parent.parent / "storefront"

MODULES = sorted(
    ".".join(path.relative_to(PACKAGE_ROOT.parent).with_suffix("").parts)
    for path in PACKAGE_ROOT.rglob("*.py")
)


def test_modules_found():
    assert "storefront.main" in MODULES
    assert "storefront.repositories.product_repo" in MODULES


@pytest.mark.parametrize("module_name", MODULES)
def test_module_imports(module_name):
    importlib.import_module(module_name)


@pytest.mark.parametrize(
    "module_name",
    [m for m in MODULES if m.startswith("storefront.repositories.")],
)
def test_repositories_do_not_shadow_builtins(module_name):
    module = importlib.import_module(module_name)
    for value in vars(module).values():
        if isinstance(value, type) and value.__module__ == module_name:
            assert "list" not in vars(value), f"{value.__name__}.list shadows the builtin"
