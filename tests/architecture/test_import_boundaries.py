"""
Import-boundary enforcement.

1. Kernel independence  : stock_kernel/** may not import stock_config.
2. Domain purity        : stock_kernel/domain/** may not import the DB,
                           ORM, models, services or selectors.
3. Domain no-impure     : stock_kernel/domain/** may not read the wall
                           clock or the environment, except the clock module.
4. Config entrypoint    : only stock_config itself reads environment
                           variables.

All scanning is done via AST; these tests are read-only.
"""

import ast
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]


def _python_files(package: str) -> list[Path]:
    return sorted((REPO_ROOT / package).rglob("*.py"))


def _parse(path: Path) -> ast.AST:
    return ast.parse(path.read_text(), filename=str(path))


def _is_type_checking_guard(node: ast.AST) -> bool:
    if not isinstance(node, ast.If):
        return False
    test = node.test
    return (isinstance(test, ast.Name) and test.id == "TYPE_CHECKING") or (
        isinstance(test, ast.Attribute) and test.attr == "TYPE_CHECKING"
    )


def _extract_imports(path: Path) -> list[tuple[int, str]]:
    """
    Return (line_number, module_string) for every runtime import in *path*.

    Imports under ``if TYPE_CHECKING:`` are annotation-only and skipped.
    """
    tree = _parse(path)
    annotation_only = {
        id(child)
        for guard in ast.walk(tree)
        if _is_type_checking_guard(guard)
        for stmt in guard.body
        for child in ast.walk(stmt)
    }

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if id(node) in annotation_only:
            continue
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _extract_attribute_calls(path: Path) -> list[tuple[int, str]]:
    """Return (line_number, 'receiver.attr') for two-level attribute references."""
    return [
        (node.lineno, f"{node.value.id}.{node.attr}")
        for node in ast.walk(_parse(path))
        if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name)
    ]


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    return any(module == p or module.startswith(f"{p}.") for p in prefixes)


def _relative(path: Path) -> str:
    return str(path.relative_to(REPO_ROOT))


class TestKernelIndependence:

    def test_kernel_never_imports_config(self):
        violations = [
            f"  {_relative(path)}:{lineno} imports '{module}'"
            for path in _python_files("stock_kernel")
            for lineno, module in _extract_imports(path)
            if _matches_any(module, ("stock_config",))
        ]

        assert not violations, (
            "stock_kernel must not import stock_config; use stock_config.bridges:\n"
            + "\n".join(violations)
        )


class TestDomainPurity:

    FORBIDDEN_PREFIXES = (
        "sqlalchemy",
        "psycopg2",
        "sqlite3",
        "stock_kernel.db",
        "stock_kernel.models",
        "stock_kernel.services",
        "stock_kernel.selectors",
        "stock_config",
    )

    IMPURE_CALLS = frozenset({
        "datetime.now",
        "datetime.utcnow",
        "time.time",
        "os.environ",
        "os.getenv",
    })

    def test_domain_has_no_persistence_imports(self):
        violations = [
            f"  {_relative(path)}:{lineno} imports '{module}'"
            for path in _python_files("stock_kernel/domain")
            for lineno, module in _extract_imports(path)
            if _matches_any(module, self.FORBIDDEN_PREFIXES)
        ]

        assert not violations, (
            "stock_kernel/domain must stay free of persistence and config:\n"
            + "\n".join(violations)
        )

    def test_domain_has_no_impure_calls(self):
        violations = [
            f"  {_relative(path)}:{lineno} uses '{call}'"
            for path in _python_files("stock_kernel/domain")
            if path.name != "clock.py"
            for lineno, call in _extract_attribute_calls(path)
            if call in self.IMPURE_CALLS
        ]

        assert not violations, (
            "Domain code must take time from a Clock and settings from policies:\n"
            + "\n".join(violations)
        )


class TestConfigEntrypoint:

    def test_only_config_reads_environment(self):
        violations = [
            f"  {_relative(path)}:{lineno} uses '{call}'"
            for path in _python_files("stock_kernel")
            for lineno, call in _extract_attribute_calls(path)
            if call in ("os.environ", "os.getenv")
        ]

        assert not violations, (
            "Environment variables are read only by stock_config:\n"
            + "\n".join(violations)
        )


class TestImportScanner:

    def test_type_checking_imports_skipped(self, tmp_path):
        module = tmp_path / "sample.py"
        module.write_text(
            "from typing import TYPE_CHECKING\n"
            "import json\n"
            "if TYPE_CHECKING:\n"
            "    from stock_kernel.models.movement import Movement\n"
        )

        modules = [name for _, name in _extract_imports(module)]

        assert modules == ["typing", "json"]
