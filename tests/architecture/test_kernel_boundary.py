"""
Kernel boundary contract.

1. recruitment_kernel/** may NOT import recruitment_config or
   recruitment_services.  The kernel never depends upward.

2. recruitment_config/** may NOT import recruitment_services.

3. recruitment_kernel/domain/** is pure: no SQLAlchemy, no models, no
   services, no db.

These tests read source code via AST.
"""

import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _python_files(package: str) -> list[Path]:
    return sorted((ROOT / package).rglob("*.py"))


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """Extract (line_number, module_string) for all imports in a file."""
    tree = ast.parse(filepath.read_text(encoding="utf-8"), filename=str(filepath))

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found: list[str] = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            for prefix in forbidden:
                if module == prefix or module.startswith(f"{prefix}."):
                    found.append(
                        f"  {filepath.relative_to(ROOT)}:{lineno} imports '{module}'"
                    )
    return found


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestKernelNoUpwardDependencies:
    FORBIDDEN_PREFIXES = (
        "recruitment_config",
        "recruitment_services",
    )

    def test_packages_exist(self):
        assert _python_files("recruitment_kernel")
        assert _python_files("recruitment_config")

    def test_kernel_does_not_import_forbidden_packages(self):
        violations = _violations("recruitment_kernel", self.FORBIDDEN_PREFIXES)

        assert not violations, (
            "Kernel boundary violation: recruitment_kernel/** must not import "
            "upward packages:\n" + "\n".join(violations)
        )

    def test_config_does_not_import_services(self):
        violations = _violations("recruitment_config", ("recruitment_services",))

        assert not violations, (
            "Config boundary violation: recruitment_config/** must not import "
            "recruitment_services:\n" + "\n".join(violations)
        )


class TestDomainPurity:
    FORBIDDEN_PREFIXES = (
        "sqlalchemy",
        "recruitment_kernel.db",
        "recruitment_kernel.models",
        "recruitment_kernel.services",
        "recruitment_kernel.selectors",
    )

    def test_domain_has_no_io_imports(self):
        violations = _violations("recruitment_kernel/domain", self.FORBIDDEN_PREFIXES)

        assert not violations, (
            "Domain purity violation: recruitment_kernel/domain/** must not "
            "import persistence or services:\n" + "\n".join(violations)
        )

    def test_only_the_clock_reads_wall_time(self):
        offenders = []
        for filepath in _python_files("recruitment_kernel/domain"):
            if filepath.name == "clock.py":
                continue
            if "datetime.now(" in filepath.read_text(encoding="utf-8"):
                offenders.append(str(filepath.relative_to(ROOT)))

        assert not offenders, f"Use an injected Clock instead: {offenders}"
