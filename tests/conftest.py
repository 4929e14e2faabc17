from pathlib import Path
from typing import Optional

import pytest

from fatalscan.core.php import PhpRuntime
from fatalscan.detectors.base import DetectorServices


class StubRuntime(PhpRuntime):
    """A PHP runtime that never spawns a process and answers lint with canned output."""

    def __init__(self, lint_output: Optional[str] = None) -> None:
        super().__init__(binary=None)
        self.lint_output = lint_output
        self.linted = []

    def lint(self, path: Path) -> Optional[str]:
        self.linted.append(Path(path))
        return self.lint_output


@pytest.fixture()
def services() -> DetectorServices:
    return DetectorServices(runtime=PhpRuntime.disabled())


@pytest.fixture()
def plugin_dir(tmp_path: Path) -> Path:
    d = tmp_path / "demo-plugin"
    d.mkdir()
    return d


def write_php(root: Path, rel: str, body: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
    return path


def kinds(findings):
    return [f.kind for f in findings]
