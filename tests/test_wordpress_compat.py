from pathlib import Path

import pytest

from fatalscan.core.models import (
    DEPRECATED_FUNCTION,
    DEPRECATED_HOOK,
    REMOVED_FUNCTION,
    VERSION_REQUIREMENT,
    WARNING,
)
from fatalscan.detectors.wordpress_compat import WordPressCompatibilityDetector

from .conftest import kinds, write_php


def scan(services, root: Path, body: str, wp: str = "6.4", **kwargs):
    path = write_php(root, "main.php", body)
    detector = WordPressCompatibilityDetector(services, **kwargs)
    detector.set_plugin_root(root)
    return detector.detect(path, "8.1", wp)


def test_deprecated_function_names_replacement(services, plugin_dir: Path):
    findings = scan(services, plugin_dir, "<?php\n$v = get_settings('home');\n")
    assert kinds(findings) == [DEPRECATED_FUNCTION]
    finding = findings[0]
    assert finding.severity == WARNING
    assert finding.context["replacement"] == "get_option"
    assert finding.suggestion == "Use 'get_option' instead"


@pytest.mark.parametrize(
    "wp, expected",
    [("2.7", []), ("2.9", [DEPRECATED_FUNCTION]), ("3.0", [REMOVED_FUNCTION]), ("6.4", [REMOVED_FUNCTION])],
)
def test_removal_supersedes_deprecation(services, plugin_dir: Path, wp, expected):
    assert kinds(scan(services, plugin_dir, "<?php\necho js_escape($s);\n", wp)) == expected


@pytest.mark.parametrize(
    "snippet",
    [
        "$v = $this->get_settings('home');",
        "$v = Options::get_settings('home');",
        "function get_settings($key) { return $key; }",
        "echo 'get_settings() is gone';",
        "// get_settings('home');",
        "$v = $get_settings('home');",
    ],
)
def test_non_calls_are_ignored(services, plugin_dir: Path, snippet):
    assert scan(services, plugin_dir, "<?php\n" + snippet + "\n") == []


def test_function_newer_than_target_wordpress(services, plugin_dir: Path):
    body = "<?php\n$env = wp_get_environment_type();\n"
    findings = scan(services, plugin_dir, body, wp="5.4")
    assert kinds(findings) == [VERSION_REQUIREMENT]
    assert findings[0].context["required_version"] == "5.5.0"
    assert scan(services, plugin_dir, body, wp="5.5") == []


def test_deprecated_hooks_table(services, plugin_dir: Path):
    hooks = {"acme_old_hook": ("5.0.0", "acme_new_hook")}
    body = "<?php\nadd_action('acme_old_hook', 'acme_cb');\n"
    findings = scan(services, plugin_dir, body, wp="6.4", deprecated_hooks=hooks)
    assert kinds(findings) == [DEPRECATED_HOOK]
    assert findings[0].context["hook"] == "acme_old_hook"
    assert scan(services, plugin_dir, body, wp="4.9", deprecated_hooks=hooks) == []
    assert scan(services, plugin_dir, body, wp="6.4") == []
