from pathlib import Path

from fatalscan.core.models import MISSING_SEMICOLON, SYNTAX_ERROR, UNMATCHED_BRACKETS, WARNING
from fatalscan.detectors.base import DetectorServices
from fatalscan.detectors.syntax import SyntaxErrorDetector

from .conftest import StubRuntime, kinds, write_php


def scan(services, root: Path, body: str):
    path = write_php(root, "main.php", body)
    detector = SyntaxErrorDetector(services)
    detector.set_plugin_root(root)
    return detector.detect(path, "8.1", "6.4")


def test_missing_semicolon_is_reported_on_the_statement_line(services, plugin_dir: Path):
    findings = scan(services, plugin_dir, "<?php\n$a = 1\n$b = 2;\n")
    assert kinds(findings) == [MISSING_SEMICOLON]
    assert findings[0].line == 2
    assert findings[0].severity == WARNING
    assert findings[0].context["code"] == "$a = 1"


def test_statement_split_across_lines_is_fine(services, plugin_dir: Path):
    body = "<?php\necho sprintf(\n    '%s',\n    $x\n);\n"
    assert scan(services, plugin_dir, body) == []


def test_method_chain_is_fine(services, plugin_dir: Path):
    body = "<?php\n$q = $db\n    ->where('a')\n    ->get();\n"
    assert scan(services, plugin_dir, body) == []


def test_multiline_string_is_not_judged(services, plugin_dir: Path):
    body = '<?php\n$sql = "SELECT *\n  FROM x WHERE (a";\n'
    assert scan(services, plugin_dir, body) == []


def test_unmatched_bracket(services, plugin_dir: Path):
    findings = scan(services, plugin_dir, "<?php\n$x = foo(1;\n")
    assert kinds(findings) == [UNMATCHED_BRACKETS]
    assert findings[0].line == 2


def test_brackets_in_strings_do_not_count(services, plugin_dir: Path):
    assert scan(services, plugin_dir, "<?php\n$s = 'a(b';\n$t = \"[\";\n") == []


def test_lint_output_becomes_deduplicated_findings(plugin_dir: Path):
    output = (
        "PHP Parse error:  syntax error, unexpected '}' in /x/a.php on line 3\n"
        "Parse error: syntax error, unexpected '}' in /x/a.php on line 3\n"
        "Errors parsing /x/a.php\n"
    )
    runtime = StubRuntime(lint_output=output)
    services = DetectorServices(runtime=runtime)
    findings = scan(services, plugin_dir, "<?php\nfunction a() {\n}\n}\n")
    assert kinds(findings) == [SYNTAX_ERROR]
    assert findings[0].line == 3
    assert findings[0].message == "syntax error, unexpected '}'"
    assert findings[0].context["source"] == "php -l"
    assert runtime.linted == [plugin_dir / "main.php"]


def test_clean_lint_output_adds_nothing(plugin_dir: Path):
    services = DetectorServices(runtime=StubRuntime(lint_output="No syntax errors detected in main.php"))
    assert scan(services, plugin_dir, "<?php\n$a = 1;\n") == []
