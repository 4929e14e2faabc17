from pathlib import Path

import pytest

from fatalscan.analysis.context import ADMIN, AMBIGUOUS, CONDITIONAL, FRONTEND, WordPressContextAnalyzer
from fatalscan.core.models import ERROR, WARNING


@pytest.mark.parametrize(
    "lines, expected",
    [
        (["<?php", "if (is_admin()) {", "    is_plugin_active('a/a.php');", "}"], ADMIN),
        (["<?php", "add_action('admin_init', function () {", "    is_plugin_active('a/a.php');", "});"], ADMIN),
        (["<?php", "add_action('wp_head', function () {", "    is_plugin_active('a/a.php');", "});"], FRONTEND),
        (["<?php", "if (function_exists('is_plugin_active')) {", "    is_plugin_active('a/a.php');", "}"],
         CONDITIONAL),
        (["<?php", "if (is_plugin_active('a/a.php')) { echo 1; }"], AMBIGUOUS),
    ],
)
def test_classify(lines, expected):
    analyzer = WordPressContextAnalyzer()
    line_no = next(i for i, line in enumerate(lines, start=1) if "is_plugin_active(" in line and "exists" not in line)
    assert analyzer.classify(Path("plugin.php"), line_no, "is_plugin_active", lines) == expected


def test_named_callback_registered_on_admin_hook():
    lines = ["<?php"] + ["// filler"] * 15 + [
        "function acme_check() {",
        "    return is_plugin_active('a/a.php');",
        "}",
    ] + ["// filler"] * 15 + ["add_action('admin_init', 'acme_check');"]
    index = lines.index("    return is_plugin_active('a/a.php');") + 1
    assert WordPressContextAnalyzer().classify(Path("plugin.php"), index, "is_plugin_active", lines) == ADMIN


def test_severity_and_suggestion_follow_context():
    analyzer = WordPressContextAnalyzer()
    assert analyzer.severity_for(ADMIN) == WARNING
    assert analyzer.severity_for(CONDITIONAL) == WARNING
    assert analyzer.severity_for(FRONTEND) == ERROR
    assert analyzer.severity_for(AMBIGUOUS) == ERROR
    assert "wp-admin/includes/plugin.php" in analyzer.suggestion_for(AMBIGUOUS, "is_plugin_active")


def test_unreadable_file_is_ambiguous(tmp_path: Path):
    assert WordPressContextAnalyzer().classify(tmp_path / "missing.php", 1, "is_plugin_active") == AMBIGUOUS
