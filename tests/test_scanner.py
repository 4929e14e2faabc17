import logging
from pathlib import Path

import pytest

from fatalscan.core.config import ScanOptions
from fatalscan.core.loader import detector_classes, discover_detectors, select_detectors
from fatalscan.core.models import (
    PHP_VERSION_REQUIREMENT,
    UNDEFINED_CLASS,
    UNDEFINED_FUNCTION,
    PluginPathError,
)
from fatalscan.core.php import PhpRuntime
from fatalscan.core.scanner import PluginScanner, build_ecosystem_detector, build_services
from fatalscan.detectors.base import Detector, DetectorServices
from fatalscan.detectors.undefined_function import UndefinedFunctionDetector
from fatalscan.ecosystems.widgets import DEBUG_MODE

from .conftest import kinds, write_php

RUN_ORDER = [
    "syntax",
    "undefined_function",
    "class_conflict",
    "wordpress_compat",
    "php_version",
    "template_method",
    "this_context",
]


def options(**overrides) -> ScanOptions:
    values = dict(php_versions=["8.1"], wp_versions=["6.4"], show_progress=False, workers=2, php_binary=None)
    values.update(overrides)
    return ScanOptions(**values)


def run_scan(path: Path, detectors=None, **overrides):
    services = DetectorServices(runtime=PhpRuntime.disabled())
    if detectors is None:
        detectors = discover_detectors(services)
    else:
        detectors = {name: cls(services) for name, cls in detectors.items()}
    return PluginScanner(path, detectors, services, options(**overrides)).scan()


class ExplodingDetector(Detector):
    NAME = "exploding"

    def detect_lines(self, path, lines, php_version, wp_version):
        raise RuntimeError("boom")


def test_detectors_are_discovered_in_run_order():
    assert list(detector_classes()) == RUN_ORDER


def test_discovered_detectors_share_services():
    services = DetectorServices(runtime=PhpRuntime.disabled())
    detectors = discover_detectors(services)
    assert all(d.services is services for d in detectors.values())


def test_select_detectors():
    detectors = discover_detectors(DetectorServices(runtime=PhpRuntime.disabled()))
    assert list(select_detectors(detectors, "all")) == RUN_ORDER
    assert list(select_detectors(detectors, "*")) == RUN_ORDER
    assert list(select_detectors(detectors, "php_version, syntax")) == ["syntax", "php_version"]
    assert select_detectors(detectors, "nope") == {}


def test_scan_reports_undefined_function(plugin_dir: Path):
    write_php(plugin_dir, "demo.php", "<?php echo some_undefined_function();")
    result = run_scan(plugin_dir)
    assert not result.passed
    assert len(result.combinations) == 1
    assert kinds(result.combinations[0].findings) == [UNDEFINED_FUNCTION]
    assert result.files == [plugin_dir / "demo.php"]


def test_severity_filter(plugin_dir: Path):
    write_php(plugin_dir, "demo.php", "<?php\nadd_action('admin_init', function(){ is_plugin_active('x/x.php'); });\n")
    assert run_scan(plugin_dir).passed
    result = run_scan(plugin_dir, severities=["error", "warning"])
    assert kinds(result.combinations[0].findings) == [UNDEFINED_FUNCTION]


def test_every_version_pair_is_a_combination(plugin_dir: Path):
    write_php(plugin_dir, "demo.php", "<?php\n$ok = str_contains($haystack, 'needle');\n")
    result = run_scan(plugin_dir, php_versions=["7.4", "8.0"], wp_versions=["6.3", "6.4"])
    pairs = [(c.php_version, c.wp_version, c.passed) for c in result.combinations]
    assert pairs == [("7.4", "6.3", False), ("7.4", "6.4", False), ("8.0", "6.3", True), ("8.0", "6.4", True)]
    assert kinds(result.combinations[0].findings) == [PHP_VERSION_REQUIREMENT]


def test_missing_path_raises(tmp_path: Path):
    with pytest.raises(PluginPathError):
        run_scan(tmp_path / "nope")


def test_non_php_file_raises(plugin_dir: Path):
    readme = plugin_dir / "readme.txt"
    readme.write_text("=== Demo ===")
    with pytest.raises(PluginPathError):
        run_scan(readme)


def test_empty_plugin_passes_every_combination(plugin_dir: Path):
    (plugin_dir / "readme.txt").write_text("=== Demo ===")
    result = run_scan(plugin_dir, php_versions=["7.4", "8.3"])
    assert result.files == []
    assert [c.passed for c in result.combinations] == [True, True]
    assert result.passed


def test_single_file_sees_symbols_from_its_plugin(plugin_dir: Path):
    main = write_php(plugin_dir, "main.php", "<?php\necho acme_helper();\n$h = new Acme_Helper();\n")
    write_php(plugin_dir, "inc/helpers.php", "<?php\nfunction acme_helper() { return 1; }\nclass Acme_Helper {}\n")
    result = run_scan(main)
    assert result.files == [main]
    assert result.plugin_root == plugin_dir
    assert result.passed


def test_symbols_resolve_across_files(plugin_dir: Path):
    write_php(plugin_dir, "a.php", "<?php\necho acme_helper();\n")
    write_php(plugin_dir, "b.php", "<?php\nfunction acme_helper() { return 1; }\n")
    assert run_scan(plugin_dir).passed


def test_failing_detector_is_isolated(plugin_dir: Path, caplog):
    write_php(plugin_dir, "demo.php", "<?php echo some_undefined_function();")
    detectors = {"exploding": ExplodingDetector, "undefined_function": UndefinedFunctionDetector}
    with caplog.at_level(logging.WARNING):
        result = run_scan(plugin_dir, detectors=detectors)
    assert kinds(result.combinations[0].findings) == [UNDEFINED_FUNCTION]
    assert "Detector exploding failed" in caplog.text


def test_ignore_dependency_errors(plugin_dir: Path):
    write_php(plugin_dir, "demo.php", "<?php\n$w = new Widget_Base();\n")
    result = run_scan(plugin_dir, detect_ecosystems=False)
    assert kinds(result.combinations[0].findings) == [UNDEFINED_CLASS]
    assert run_scan(plugin_dir, detect_ecosystems=False, ignore_dependency_errors=True).passed


def test_forced_ecosystem(plugin_dir: Path):
    write_php(plugin_dir, "demo.php", "<?php\n$w = new Widget_Base();\n")
    result = run_scan(plugin_dir, detect_ecosystems=False, forced_ecosystems=["Elementor"])
    assert result.ecosystems == ["elementor"]
    assert result.passed


def test_detected_ecosystem(plugin_dir: Path):
    write_php(
        plugin_dir,
        "demo.php",
        "<?php\n/**\n * Plugin Name: Demo\n * Elementor tested up to: 3.15.0\n */\n$w = new Widget_Base();\n",
    )
    result = run_scan(plugin_dir)
    assert "elementor" in result.ecosystems
    assert result.passed


def test_build_services_layers_config():
    config = {
        "dependency_exceptions": {"acme": {"functions": ["acme_api"]}},
        "reporting_mode": "all_errors",
    }
    services = build_services(config, options(reporting_mode=DEBUG_MODE))
    assert services.exceptions.is_function_excepted("acme_api", ["acme"])
    assert services.widgets.reporting_mode == DEBUG_MODE
    assert not services.runtime.available


def test_build_ecosystem_detector_adds_patterns(plugin_dir: Path):
    write_php(plugin_dir, "demo.php", "<?php\n/*\nPlugin Name: Demo\nAcme Suite requires at least: 2.0\n*/\n")
    detector = build_ecosystem_detector({"ecosystem_patterns": {"acme": {"headers": ["Acme Suite requires at least"]}}})
    assert "acme" in detector.detect(plugin_dir)


def test_ignore_dependency_errors_keeps_admin_function_findings(plugin_dir: Path):
    write_php(plugin_dir, "demo.php", "<?php\nif (is_plugin_active('x/x.php')) { echo 1; }\n")
    result = run_scan(plugin_dir, detect_ecosystems=False, ignore_dependency_errors=True)
    findings = result.combinations[0].findings
    assert kinds(findings) == [UNDEFINED_FUNCTION]
    assert findings[0].context["function"] == "is_plugin_active"
