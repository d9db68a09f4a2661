"""
Code quality tests for the Spoolshelf app package.

These check for anti-patterns that only fail at runtime, such as a function
using a name before re-importing it locally.
"""

import ast
import importlib
from pathlib import Path

import pytest

APP_DIR = Path(__file__).parent.parent.parent / "app"

# Names that are fine to re-import inside a function
SAFE_REIMPORT_NAMES = {"logging", "json", "Path", "datetime", "asyncio"}


class ShadowedImportVisitor(ast.NodeVisitor):
    """Find local imports that shadow a module-level import after the name was already used."""

    def __init__(self):
        self.module_imports: set[str] = set()
        self.findings: list[tuple[str, int, str]] = []  # (name, import_line, function)
        self.depth = 0

    def _record_imports(self, node):
        if self.depth == 0:
            for alias in node.names:
                self.module_imports.add(alias.asname or alias.name.split(".")[0])
        self.generic_visit(node)

    visit_Import = _record_imports
    visit_ImportFrom = _record_imports

    def _check_function(self, node):
        local_imports: dict[str, int] = {}
        first_use: dict[str, int] = {}

        for child in ast.walk(node):
            if isinstance(child, (ast.Import, ast.ImportFrom)):
                for alias in child.names:
                    name = alias.asname or alias.name.split(".")[0]
                    if name in self.module_imports and name not in SAFE_REIMPORT_NAMES:
                        local_imports[name] = child.lineno
            elif isinstance(child, ast.Name) and child.id not in first_use:
                first_use[child.id] = child.lineno

        for name, import_line in local_imports.items():
            if name in first_use and first_use[name] < import_line:
                self.findings.append((name, import_line, node.name))

        self.depth += 1
        self.generic_visit(node)
        self.depth -= 1

    visit_FunctionDef = _check_function
    visit_AsyncFunctionDef = _check_function


def find_import_shadowing(file_path: Path) -> list[tuple[str, int, str]]:
    tree = ast.parse(file_path.read_text(encoding="utf-8"))
    visitor = ShadowedImportVisitor()
    visitor.visit(tree)
    return visitor.findings


class TestImportShadowing:
    @pytest.mark.parametrize("subdir", ["api", "client", "core", "services"])
    def test_no_import_shadowing(self, subdir):
        findings = []
        for py_file in sorted((APP_DIR / subdir).rglob("*.py")):
            for name, line, func in find_import_shadowing(py_file):
                findings.append(f"  - {py_file.name}: '{name}' at line {line} in function '{func}'")

        if findings:
            pytest.fail("Import shadowing detected:\n" + "\n".join(findings))


class TestModuleImports:
    def test_all_modules_importable(self):
        """Catch syntax errors and missing dependencies in modules no test touches directly."""
        modules = [
            "spoolshelf.app.main",
            "spoolshelf.app.client.controller",
            "spoolshelf.app.client.storage",
            "spoolshelf.app.services.normalize",
        ]

        errors = []
        for module_name in modules:
            try:
                importlib.import_module(module_name)
            except Exception as e:
                errors.append(f"{module_name}: {type(e).__name__}: {e}")

        if errors:
            pytest.fail("Failed to import modules:\n" + "\n".join(errors))
