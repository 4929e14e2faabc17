from pathlib import Path

import pytest

from fatalscan.core.models import ERROR, PHP_VERSION_REQUIREMENT, UNDEFINED_FUNCTION, WARNING
from fatalscan.detectors.undefined_function import UndefinedFunctionDetector

from .conftest import kinds, write_php


def scan(services, root: Path, body: str, php: str = "8.1", wp: str = "6.4", ecosystems=()):
    path = write_php(root, "main.php", body)
    detector = UndefinedFunctionDetector(services)
    detector.set_plugin_root(root)
    detector.set_detected_ecosystems(ecosystems)
    return detector.detect(path, php, wp)


def test_undefined_call_is_reported(services, plugin_dir: Path):
    findings = scan(services, plugin_dir, "<?php echo some_undefined_function();")
    assert len(findings) == 1
    finding = findings[0]
    assert finding.kind == UNDEFINED_FUNCTION
    assert finding.severity == ERROR
    assert "some_undefined_function" in finding.message
    assert finding.line == 1
    assert finding.relative_path == "main.php"


def test_admin_function_without_admin_context_is_an_error(services, plugin_dir: Path):
    findings = scan(services, plugin_dir, "<?php\nif (is_plugin_active('x/x.php')) { echo 1; }\n")
    assert kinds(findings) == [UNDEFINED_FUNCTION]
    assert findings[0].severity == ERROR
    assert findings[0].context["wp_context"] == "ambiguous"
    assert findings[0].context["function"] == "is_plugin_active"


def test_admin_function_inside_admin_hook_is_a_warning(services, plugin_dir: Path):
    body = "<?php\nadd_action('admin_init', function(){ is_plugin_active('x/x.php'); });\n"
    findings = scan(services, plugin_dir, body)
    assert kinds(findings) == [UNDEFINED_FUNCTION]
    assert findings[0].severity == WARNING
    assert findings[0].context["wp_context"] == "admin"


@pytest.mark.parametrize(
    "snippet",
    [
        "$obj->acme_helper(1);",
        "$obj -> acme_helper(1);",
        "Acme_Class::acme_helper(1);",
        "self::acme_helper(1);",
        "parent::acme_helper(1);",
        "function acme_helper($a) { return $a; }",
        "$x = new acme_helper(1);",
        "$x = new Acme\\acme_helper(1);",
    ],
)
def test_methods_definitions_and_instantiation_are_not_function_calls(services, plugin_dir: Path, snippet):
    assert scan(services, plugin_dir, "<?php\n" + snippet + "\n") == []


def test_calls_inside_strings_comments_and_heredocs_are_ignored(services, plugin_dir: Path):
    body = (
        "<?php\n"
        "// acme_missing();\n"
        "/* acme_missing();\n"
        "   acme_missing(); */\n"
        "$msg = 'acme_missing()';\n"
        "$html = <<<HTML\n"
        "<p>acme_missing()</p>\n"
        "HTML;\n"
    )
    assert scan(services, plugin_dir, body) == []


def test_function_declared_in_same_file(services, plugin_dir: Path):
    body = "<?php\nacme_boot();\nfunction acme_boot() {\n    return true;\n}\n"
    assert scan(services, plugin_dir, body) == []


def test_function_declared_in_another_file_via_registry(services, plugin_dir: Path):
    helpers = write_php(plugin_dir, "inc/helpers.php", "<?php\nfunction acme_helper() { return 1; }\n")
    services.registry.ingest([helpers])
    assert scan(services, plugin_dir, "<?php\necho acme_helper();\n") == []


def test_builtin_and_wordpress_functions_are_known(services, plugin_dir: Path):
    body = (
        "<?php\n"
        "$n = count($items);\n"
        "$t = esc_html__('Hi', 'demo');\n"
        "$p = get_post_meta($id, 'k', true);\n"
        "add_action('init', 'acme_init');\n"
    )
    assert scan(services, plugin_dir, body) == []


def test_versioned_php_function(services, plugin_dir: Path):
    body = "<?php\n$ok = str_contains($haystack, 'needle');\n"
    findings = scan(services, plugin_dir, body, php="7.4")
    assert kinds(findings) == [PHP_VERSION_REQUIREMENT]
    assert "8.0.0" in findings[0].message
    assert scan(services, plugin_dir, body, php="8.0") == []


def test_ecosystem_functions_need_the_ecosystem(services, plugin_dir: Path):
    body = "<?php\nelementor_custom_render();\n"
    assert kinds(scan(services, plugin_dir, body)) == [UNDEFINED_FUNCTION]
    assert scan(services, plugin_dir, body, ecosystems=["elementor"]) == []


def test_javascript_and_css_lines_are_skipped(services, plugin_dir: Path):
    body = (
        "<?php ?>\n"
        "<script>\n"
        "  initSlider(options);\n"
        "</script>\n"
        "<?php\n"
        "echo '<div style=\"width: calc(100% - 10px)\">';\n"
        "jQuery(document).ready(acmeReady());\n"
    )
    assert scan(services, plugin_dir, body) == []


def test_unreadable_file_yields_nothing(services, tmp_path: Path):
    detector = UndefinedFunctionDetector(services)
    assert detector.detect(tmp_path / "missing.php", "8.1", "6.4") == []


def test_hash_comment_containing_block_opener_hides_nothing(services, plugin_dir: Path):
    body = "<?php\n# cache files under uploads/*.json\nacme_missing();\n"
    findings = scan(services, plugin_dir, body)
    assert kinds(findings) == [UNDEFINED_FUNCTION]
    assert findings[0].line == 3


@pytest.mark.parametrize("needle", ["'<script'", "'<script>'", '"<script type=\\"module\\">"'])
def test_script_tag_inside_php_string_does_not_start_a_script_block(services, plugin_dir: Path, needle):
    body = f"<?php\nif (strpos($html, {needle}) !== false) {{ return; }}\nacme_missing();\n"
    findings = scan(services, plugin_dir, body)
    assert kinds(findings) == [UNDEFINED_FUNCTION]
    assert findings[0].line == 3


def test_class_method_does_not_define_a_global_function(services, plugin_dir: Path):
    body = (
        "<?php\n"
        "class Acme_Cart {\n"
        "    public function format_price($v) { return $v; }\n"
        "}\n"
        "echo format_price(10);\n"
    )
    findings = scan(services, plugin_dir, body)
    assert kinds(findings) == [UNDEFINED_FUNCTION]
    assert findings[0].line == 5


def test_registry_skips_methods_but_keeps_conditional_functions(services, plugin_dir: Path):
    lib = write_php(
        plugin_dir,
        "inc/lib.php",
        "<?php\n"
        "interface Acme_Formatter {\n"
        "    public function format_label($v);\n"
        "}\n"
        "$handler = new class {\n"
        "    function acme_anon_method() {}\n"
        "};\n"
        "if (!function_exists('acme_polyfill')) {\n"
        "    function acme_polyfill() {}\n"
        "}\n",
    )
    services.registry.ingest([lib])
    assert services.registry.has_function("acme_polyfill")
    assert not services.registry.has_function("format_label")
    assert not services.registry.has_function("acme_anon_method")
