from pathlib import Path

import pytest

from fatalscan.core.models import CLASS_ALREADY_EXISTS, PHP_CLASS_CONFLICT, UNDEFINED_CLASS, WORDPRESS_CLASS_CONFLICT
from fatalscan.core.php import PhpRuntime
from fatalscan.detectors.base import DetectorServices
from fatalscan.detectors.class_conflict import ClassConflictDetector

from .conftest import kinds, write_php


def make_detector(services, root: Path, ecosystems=()) -> ClassConflictDetector:
    detector = ClassConflictDetector(services)
    detector.set_plugin_root(root)
    detector.set_detected_ecosystems(ecosystems)
    return detector


def scan(services, root: Path, body: str, ecosystems=()):
    path = write_php(root, "main.php", body)
    return make_detector(services, root, ecosystems).detect(path, "8.1", "6.4")


@pytest.mark.parametrize("name", ["WP_Error", "WP_Query", "wpdb", "Walker_Nav_Menu"])
def test_wordpress_core_class_conflict(services, plugin_dir: Path, name):
    findings = scan(services, plugin_dir, f"<?php\nclass {name} {{}}\n")
    assert kinds(findings) == [WORDPRESS_CLASS_CONFLICT]
    assert findings[0].line == 2
    assert findings[0].context["class_name"] == name


@pytest.mark.parametrize("name", ["Exception", "DateTime", "ArrayIterator", "Closure"])
def test_php_builtin_class_conflict(services, plugin_dir: Path, name):
    findings = scan(services, plugin_dir, f"<?php\nclass {name} {{}}\n")
    assert kinds(findings) == [PHP_CLASS_CONFLICT]


def test_guarded_polyfill_is_not_a_conflict(services, plugin_dir: Path):
    body = "<?php\nif (!class_exists('WP_Error')) {\n    class WP_Error {}\n}\n"
    assert scan(services, plugin_dir, body) == []


def test_namespaced_declaration_is_not_a_conflict(services, plugin_dir: Path):
    assert scan(services, plugin_dir, "<?php\nnamespace Acme;\nclass WP_Error {}\n") == []


def test_missing_class_is_reported(services, plugin_dir: Path):
    findings = scan(services, plugin_dir, "<?php\n$x = new Acme_Missing();\n")
    assert kinds(findings) == [UNDEFINED_CLASS]
    assert findings[0].message == "Class 'Acme_Missing' not found"
    assert findings[0].context["usage"] == "new"


def test_positive_guard_block_suppresses_usage(services, plugin_dir: Path):
    body = "<?php\nif (class_exists('Acme_Missing')) {\n    $x = new Acme_Missing();\n}\n"
    assert scan(services, plugin_dir, body) == []


def test_early_return_guard_protects_rest_of_file(services, plugin_dir: Path):
    body = "<?php\nif (!class_exists('Acme_Missing')) return;\n\n$x = new Acme_Missing();\n"
    assert scan(services, plugin_dir, body) == []


def test_usage_after_guard_block_is_reported(services, plugin_dir: Path):
    body = (
        "<?php\n"
        "if (class_exists('Acme_Missing')) {\n"
        "    $x = new Acme_Missing();\n"
        "}\n"
        "$y = new Acme_Missing();\n"
    )
    findings = scan(services, plugin_dir, body)
    assert [f.line for f in findings] == [5]


def test_class_declared_in_another_file(services, plugin_dir: Path):
    main = write_php(plugin_dir, "main.php", "<?php\n$h = new Acme_Helper();\nAcme_Helper::boot();\n")
    other = write_php(plugin_dir, "inc/class-acme-helper.php", "<?php\nclass Acme_Helper {}\n")
    detector = make_detector(services, plugin_dir)
    detector.begin([main, other])
    assert services.registry.has_type("Acme_Helper")
    assert detector.detect(main, "8.1", "6.4") == []


def test_class_declared_later_in_same_file(services, plugin_dir: Path):
    body = "<?php\n$h = new Acme_Local();\nclass Acme_Local {}\n"
    assert scan(services, plugin_dir, body) == []


def test_implements_list_is_checked(services, plugin_dir: Path):
    findings = scan(services, plugin_dir, "<?php\nclass Acme_Thing implements Countable, Acme_Missing_Interface {}\n")
    assert kinds(findings) == [UNDEFINED_CLASS]
    assert findings[0].context["class_name"] == "Acme_Missing_Interface"
    assert findings[0].context["usage"] == "implements"


def test_ecosystem_classes_need_the_ecosystem(services, plugin_dir: Path):
    body = "<?php\n$w = new Widget_Base();\n"
    assert kinds(scan(services, plugin_dir, body)) == [UNDEFINED_CLASS]
    assert scan(services, plugin_dir, body, ecosystems=["elementor"]) == []


@pytest.mark.parametrize(
    "snippet",
    [
        "$x = new foo();",
        "self::boot();",
        "parent::__construct();",
        "static::instance();",
        "$x = new \\DateTime();",
        "$e = new WP_Error('code');",
        "$x = new GuzzleHttp\\Client();",
    ],
)
def test_known_or_non_class_tokens_are_ignored(services, plugin_dir: Path, snippet):
    assert scan(services, plugin_dir, "<?php\n" + snippet + "\n") == []


class LoadedClassesRuntime(PhpRuntime):
    def __init__(self, classes) -> None:
        super().__init__(binary=None)
        self._loaded = frozenset(c.lower() for c in classes)

    @property
    def declared_classes(self):
        return self._loaded


def test_every_applicable_declaration_conflict_is_reported(plugin_dir: Path):
    services = DetectorServices(runtime=LoadedClassesRuntime(["Exception"]))
    findings = scan(services, plugin_dir, "<?php\nclass Exception {}\n")
    assert kinds(findings) == [PHP_CLASS_CONFLICT, CLASS_ALREADY_EXISTS]
    assert [f.line for f in findings] == [2, 2]


def test_aliased_import_resolves_to_its_target(services, plugin_dir: Path):
    main = write_php(
        plugin_dir,
        "main.php",
        "<?php\nnamespace Acme;\nuse Vendor\\Sdk\\Http as Transport;\n$t = new Transport();\n",
    )
    lib = write_php(plugin_dir, "lib/http.php", "<?php\nnamespace Vendor\\Sdk;\nclass Http {}\n")
    detector = make_detector(services, plugin_dir)
    detector.begin([main, lib])
    assert detector.detect(main, "8.1", "6.4") == []


def test_aliased_import_of_unknown_class_is_reported(services, plugin_dir: Path):
    body = "<?php\nnamespace Acme;\nuse Vendor\\Sdk\\Http as Transport;\n$t = new Transport();\n"
    findings = scan(services, plugin_dir, body)
    assert kinds(findings) == [UNDEFINED_CLASS]
    assert findings[0].context["class_name"] == "Transport"


def test_grouped_import(services, plugin_dir: Path):
    main = write_php(
        plugin_dir,
        "main.php",
        "<?php\nnamespace Acme;\nuse Vendor\\Sdk\\{Http, Cache as Store};\n"
        "$h = new Http();\n$s = new Store();\n$q = new Qux();\n",
    )
    lib = write_php(plugin_dir, "lib/sdk.php", "<?php\nnamespace Vendor\\Sdk;\nclass Http {}\nclass Cache {}\n")
    detector = make_detector(services, plugin_dir)
    detector.begin([main, lib])
    findings = detector.detect(main, "8.1", "6.4")
    assert [f.context["class_name"] for f in findings] == ["Qux"]
    assert findings[0].line == 6


def test_hash_comment_mentioning_a_glob_hides_nothing(services, plugin_dir: Path):
    main = write_php(plugin_dir, "main.php", "<?php\n$c = new Acme_Cleaner();\n")
    lib = write_php(plugin_dir, "lib.php", "<?php\n# keeps uploads/* tidy\nclass Acme_Cleaner {}\n")
    detector = make_detector(services, plugin_dir)
    detector.begin([main, lib])
    assert services.registry.has_type("Acme_Cleaner")
    assert detector.detect(main, "8.1", "6.4") == []
