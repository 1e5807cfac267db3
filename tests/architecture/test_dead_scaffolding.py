"""
Dead scaffolding tests.

Every public module-level function, class and constant in the three packages
must be referenced somewhere other than its own definition: by another
module, a re-export, or a test.  Decorated functions (ORM event listeners)
are registered by their decorator and are exempt.
"""

from __future__ import annotations

import ast
import re
from collections import Counter
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
PACKAGES = ("recruitment_kernel", "recruitment_config", "recruitment_services")
EXEMPT = {"logger", "__all__"}

_WORD = re.compile(r"\b\w+\b")


def _source_files() -> list[Path]:
    files: list[Path] = []
    for package in (*PACKAGES, "tests"):
        files.extend(sorted((ROOT / package).rglob("*.py")))
    return files


def _public_definitions(filepath: Path) -> list[tuple[int, str]]:
    tree = ast.parse(filepath.read_text(encoding="utf-8"), filename=str(filepath))
    found: list[tuple[int, str]] = []
    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.ClassDef)):
            if not node.decorator_list:
                found.append((node.lineno, node.name))
        elif isinstance(node, ast.Assign):
            for target in node.targets:
                if isinstance(target, ast.Name):
                    found.append((node.lineno, target.id))
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            found.append((node.lineno, node.target.id))
    return [
        (lineno, name)
        for lineno, name in found
        if not name.startswith("_") and name not in EXEMPT
    ]


class TestNoUnreferencedDefinitions:
    def test_every_public_definition_is_used(self):
        words: Counter[str] = Counter()
        for filepath in _source_files():
            words.update(_WORD.findall(filepath.read_text(encoding="utf-8")))

        unused = []
        for package in PACKAGES:
            for filepath in sorted((ROOT / package).rglob("*.py")):
                for lineno, name in _public_definitions(filepath):
                    if words[name] < 2:
                        unused.append(f"  {filepath.relative_to(ROOT)}:{lineno} {name}")

        assert not unused, (
            "Definitions with no reference outside their own definition:\n"
            + "\n".join(unused)
        )
