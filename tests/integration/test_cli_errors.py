from pathlib import Path

from .conftest import run_cli, scan_args


def test_missing_path_exits_two(tmp_path: Path):
    proc = run_cli(scan_args(tmp_path / "does-not-exist"))
    assert proc.returncode == 2
    assert "Plugin path does not exist" in proc.stderr


def test_unknown_detector_selector_exits_two(plugin_dir: Path):
    proc = run_cli(scan_args(plugin_dir, "--detectors", "nonexistent"))
    assert proc.returncode == 2
    assert "No detectors selected" in proc.stderr


def test_unknown_severity_exits_two(plugin_dir: Path):
    proc = run_cli(scan_args(plugin_dir, "--severity", "error,catastrophic"))
    assert proc.returncode == 2
    assert "catastrophic" in proc.stderr


def test_subcommand_is_required():
    proc = run_cli([])
    assert proc.returncode == 2
