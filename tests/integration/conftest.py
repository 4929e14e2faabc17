import json
import subprocess
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]


def run_cli(args, cwd=None, env=None, timeout=120):
    """
    Run the CLI as a subprocess: python -m fatalscan.cli <args>
    Returns CompletedProcess with stdout/stderr text captured.
    """
    cmd = [sys.executable, "-m", "fatalscan.cli"] + list(map(str, args))
    return subprocess.run(cmd, cwd=cwd or REPO_ROOT, env=env, capture_output=True, text=True, timeout=timeout)


def scan_args(plugin: Path, *extra):
    """Arguments for a quick, deterministic scan: one version pair, no PHP binary, no progress bar."""
    return ["scan", plugin, "--php", "8.1", "--wp", "6.4", "--no-php", "--no-progress", "--no-colors", *extra]


@pytest.fixture()
def plugin_dir(tmp_path: Path) -> Path:
    d = tmp_path / "demo-plugin"
    d.mkdir()
    (d / "demo-plugin.php").write_text(
        "<?php\n"
        "/**\n"
        " * Plugin Name: Demo Plugin\n"
        " * Version: 1.0.0\n"
        " */\n"
        "\n"
        "$greeting = esc_html__('Hello', 'demo');\n"
        "echo $greeting;\n"
    )
    return d


@pytest.fixture()
def out_dir(tmp_path: Path) -> Path:
    d = tmp_path / "out"
    d.mkdir(parents=True, exist_ok=True)
    return d


def load_json(p: Path):
    with p.open("r") as f:
        return json.load(f)


def assert_exit_ok(proc):
    assert proc.returncode == 0, f"Non-zero exit:\nSTDOUT:\n{proc.stdout}\nSTDERR:\n{proc.stderr}"


def assert_file(p: Path):
    assert p.exists(), f"Expected file missing: {p}"
    return p
