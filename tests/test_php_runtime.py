import subprocess
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from fatalscan.core import php
from fatalscan.core.php import PhpRuntime


def lint_ok(args, **kwargs):
    return subprocess.CompletedProcess(args, 0, stdout=f"No syntax errors detected in {args[-1]}\n", stderr="")


def test_concurrent_lint_waits_for_binary_lookup(monkeypatch, tmp_path: Path):
    def slow_which(name):
        time.sleep(0.2)
        return "/usr/bin/php"

    monkeypatch.setattr(php.shutil, "which", slow_which)
    monkeypatch.setattr(php.subprocess, "run", lint_ok)
    runtime = PhpRuntime()
    paths = [tmp_path / f"f{i}.php" for i in range(4)]
    with ThreadPoolExecutor(max_workers=4) as pool:
        outputs = list(pool.map(runtime.lint, paths))
    assert all(out is not None and "No syntax errors" in out for out in outputs)
    assert runtime.available


def test_lint_runs_once_per_file(monkeypatch, tmp_path: Path):
    calls = []

    def run(args, **kwargs):
        calls.append(args)
        return lint_ok(args, **kwargs)

    monkeypatch.setattr(php.shutil, "which", lambda name: "/usr/bin/php")
    monkeypatch.setattr(php.subprocess, "run", run)
    runtime = PhpRuntime()
    path = tmp_path / "main.php"
    assert runtime.lint(path) == runtime.lint(path)
    assert len(calls) == 1


def test_missing_binary_disables_runtime(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(php.shutil, "which", lambda name: None)
    runtime = PhpRuntime()
    assert not runtime.available
    assert runtime.lint(tmp_path / "main.php") is None
    assert runtime.internal_functions == frozenset()
    assert not PhpRuntime.disabled().available


def test_probe_reads_internal_symbols(monkeypatch):
    def run(args, **kwargs):
        return subprocess.CompletedProcess(
            args, 0, stdout='{"functions": ["Strlen"], "classes": ["ArrayObject"]}\n', stderr=""
        )

    monkeypatch.setattr(php.shutil, "which", lambda name: "/usr/bin/php")
    monkeypatch.setattr(php.subprocess, "run", run)
    runtime = PhpRuntime()
    assert "strlen" in runtime.internal_functions
    assert "arrayobject" in runtime.declared_classes


def test_timeout_degrades_to_no_answer(monkeypatch, tmp_path: Path):
    def run(args, **kwargs):
        raise subprocess.TimeoutExpired(args, kwargs.get("timeout"))

    monkeypatch.setattr(php.shutil, "which", lambda name: "/usr/bin/php")
    monkeypatch.setattr(php.subprocess, "run", run)
    assert PhpRuntime(timeout=0.1).lint(tmp_path / "main.php") is None
