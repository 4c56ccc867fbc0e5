"""Pytest configuration and fixtures."""

import io
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator, Sequence

import pytest
from rich.console import Console

from raindrop_wizard.config import Settings
from raindrop_wizard.utils.interactive import WizardUI


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep RAINDROP_WIZARD_* variables of the developer machine out of tests."""
    for key in list(os.environ):
        if key.upper().startswith("RAINDROP_WIZARD_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def temp_workspace() -> Generator[Path, None, None]:
    """Create a temporary project directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_package_json() -> dict:
    """Sample package.json for a Next.js project."""
    return {
        "name": "test-app",
        "version": "1.0.0",
        "private": True,
        "scripts": {
            "dev": "next dev",
            "build": "next build",
        },
        "dependencies": {
            "next": "^14.0.0",
            "react": "^18.2.0",
            "react-dom": "^18.2.0",
        },
        "devDependencies": {
            "typescript": "^5.4.0",
        },
    }


@pytest.fixture
def write_package_json(temp_workspace: Path) -> Callable[[Any], Path]:
    """Write a package.json into the temporary project."""

    def _write(data: Any) -> Path:
        path = temp_workspace / "package.json"
        path.write_text(json.dumps(data, indent=2))
        return path

    return _write


@pytest.fixture
def make_tree(temp_workspace: Path) -> Callable[[Sequence[str]], Path]:
    """Create empty files at the given relative paths."""

    def _make(paths: Sequence[str]) -> Path:
        for rel in paths:
            path = temp_workspace / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("")
        return temp_workspace

    return _make


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings for a CI run against a fake query service."""
    return Settings(
        ci=True,
        region="us",
        api_key="phx_test_key",
        us_base_url="https://us.query.test",
        eu_base_url="https://eu.query.test",
        log_file_path=str(tmp_path / "wizard.log"),
    )


@pytest.fixture
def quiet_ui() -> WizardUI:
    """UI that writes to a buffer instead of the terminal."""
    return WizardUI(console=Console(file=io.StringIO(), width=200))


class ScriptedPrompter:
    """Prompter that answers from a script and records every question."""

    def __init__(
        self,
        select: Sequence[Any] = (),
        confirm: Sequence[bool] = (),
        text: Sequence[str] = (),
    ):
        self._select = list(select)
        self._confirm = list(confirm)
        self._text = list(text)
        self.questions: list[tuple[str, str, Any]] = []

    def select(self, message, choices):
        self.questions.append(("select", message, [value for _, value in choices]))
        answer = self._select.pop(0)
        if callable(answer):
            return answer([value for _, value in choices])
        return answer

    def confirm(self, message, default=True):
        self.questions.append(("confirm", message, default))
        return self._confirm.pop(0)

    def text(self, message, placeholder=None):
        self.questions.append(("text", message, placeholder))
        return self._text.pop(0)


@pytest.fixture
def scripted_prompter() -> type[ScriptedPrompter]:
    return ScriptedPrompter
