"""Architectural tests for module layering.

Static, AST-based checks that read files under the project root without
importing application code.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Iterable, Set

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
PKG_DIR = PROJECT_ROOT / "trust_survey"
SQL_KEYWORDS = ("SELECT ", "INSERT ", "UPDATE ", "DELETE FROM")


def _parse(path: Path) -> ast.Module:
    try:
        return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    except SyntaxError as exc:
        pytest.fail(f"Failed to parse {path}: {exc}")


def _imported_modules(tree: ast.Module) -> Set[str]:
    found: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            found.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            found.add(node.module)
    return found


def _string_constants(tree: ast.Module) -> Iterable[str]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            yield node.value


def test_route_modules_contain_no_sql() -> None:
    for path in sorted((PKG_DIR / "routes").glob("*.py")):
        for value in _string_constants(_parse(path)):
            assert not any(k in value for k in SQL_KEYWORDS), f"inline SQL in {path.name}: {value[:60]!r}"


def test_route_modules_do_not_touch_the_store() -> None:
    for path in sorted((PKG_DIR / "routes").glob("*.py")):
        imported = _imported_modules(_parse(path))
        offenders = {m for m in imported if m.startswith(("sqlalchemy", "trust_survey.db", "trust_survey.logic.repository_"))}
        assert not offenders, f"{path.name} imports store modules: {sorted(offenders)}"


@pytest.mark.parametrize("module", ["set_balancer.py", "message_sampler.py", "response_fields.py"])
def test_pure_logic_modules_perform_no_io(module: str) -> None:
    imported = _imported_modules(_parse(PKG_DIR / "logic" / module))
    offenders = {
        m
        for m in imported
        if m.startswith(("sqlalchemy", "fastapi", "trust_survey.db", "trust_survey.logic.repository_"))
    }
    assert not offenders, f"{module} must stay free of I/O imports: {sorted(offenders)}"


def test_sql_lives_in_repositories_only() -> None:
    allowed = {"repository_messages.py", "repository_sessions.py", "repository_responses.py"}
    for path in sorted((PKG_DIR / "logic").glob("*.py")):
        if path.name in allowed:
            continue
        for value in _string_constants(_parse(path)):
            assert not any(k in value for k in SQL_KEYWORDS), f"inline SQL in {path.name}: {value[:60]!r}"


def test_domain_errors_are_mapped_to_statuses() -> None:
    tree = _parse(PKG_DIR / "logic" / "errors.py")
    error_classes = {
        node.name
        for node in tree.body
        if isinstance(node, ast.ClassDef) and any(getattr(b, "id", None) == "SurveyError" for b in node.bases)
    }
    mapping_src = (PKG_DIR / "http" / "error_mapping.py").read_text(encoding="utf-8")
    for name in sorted(error_classes):
        assert f"{name}:" in mapping_src, f"{name} has no entry in SURVEY_ERROR_MAP"


def test_each_sql_dialect_has_the_core_tables() -> None:
    for folder in ("postgresql", "sqlite"):
        scripts = " ".join(p.read_text(encoding="utf-8") for p in sorted((PKG_DIR / "migrations" / folder).glob("*.sql")))
        for table in ("messages", "survey_sessions", "survey_responses"):
            assert f"CREATE TABLE IF NOT EXISTS {table}" in scripts, f"{folder} lacks {table}"


def test_package_readme_is_the_project_readme() -> None:
    pyproject = (PROJECT_ROOT / "pyproject.toml").read_text(encoding="utf-8")
    assert 'readme = "README.md"' in pyproject
    readme = PROJECT_ROOT / "README.md"
    assert readme.is_file()
    assert readme.read_text(encoding="utf-8").startswith("# ")
