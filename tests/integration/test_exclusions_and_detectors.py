import json
from pathlib import Path

from .conftest import assert_exit_ok, assert_file, load_json, run_cli


def test_detectors_listing():
    proc = run_cli(["detectors"])
    assert_exit_ok(proc)
    names = [line.split()[0] for line in proc.stdout.splitlines() if line.strip()]
    assert names == [
        "syntax",
        "undefined_function",
        "class_conflict",
        "wordpress_compat",
        "php_version",
        "template_method",
        "this_context",
    ]
    assert "This Context Detector" in proc.stdout


def test_exclusions_defaults():
    proc = run_cli(["exclusions"])
    assert_exit_ok(proc)
    assert "Widget exclusion statistics:" in proc.stdout
    assert "total_ecosystems: 1" in proc.stdout
    assert "Active mode: fatal_only" in proc.stdout


def test_exclusions_config_and_save(tmp_path: Path):
    config = tmp_path / "exclusions.json"
    config.write_text(json.dumps({"reporting_mode": "debug_mode"}))
    saved = tmp_path / "saved.json"
    proc = run_cli(["exclusions", "--config", config, "--save", saved])
    assert_exit_ok(proc)
    assert "Active mode: debug_mode" in proc.stdout
    assert f"Configuration written to {saved}" in proc.stdout
    data = load_json(assert_file(saved))
    assert data["reporting_mode"] == "debug_mode"
    assert "post_carousel" in data["widget_exclusions"]["elementor"]


def test_exclusions_missing_config_exits_two(tmp_path: Path):
    proc = run_cli(["exclusions", "--config", tmp_path / "nope.json"])
    assert proc.returncode == 2
    assert "not found" in proc.stderr
