"""Nox sessions for fractalview development tasks."""

from __future__ import annotations

from pathlib import Path

import nox


ROOT = Path(__file__).parent

nox.options.error_on_missing_interpreters = False


def _has_mypy_config() -> bool:
    if (ROOT / "mypy.ini").is_file():
        return True
    pyproject = ROOT / "pyproject.toml"
    if pyproject.is_file():
        return "[tool.mypy]" in pyproject.read_text(encoding="utf-8")
    return False


@nox.session
def lint(session: nox.Session) -> None:
    """Run ruff linting checks."""
    session.install("ruff")
    session.run("ruff", "check", "src", "tests")


@nox.session
def tests(session: nox.Session) -> None:
    """Run pytest against the offscreen Qt platform."""
    session.install("-e", ".[dev]")
    session.env["QT_QPA_PLATFORM"] = "offscreen"
    session.run("pytest", "-q")


@nox.session
def typecheck(session: nox.Session) -> None:
    """Run mypy when a config is present."""
    if not _has_mypy_config():
        session.skip("mypy config not found")
    session.install("-e", ".")
    session.install("mypy")
    session.run("mypy", "src/fractalview")


# --------------------------------------------------
#                  LOCAL DEV TESTING
# --------------------------------------------------


@nox.session(name="tests-dev", venv_backend="none")
def tests_dev(session: nox.Session) -> None:
    """Fast local pytest using active venv."""
    session.run("python", "-m", "pytest", "-q", external=True)
