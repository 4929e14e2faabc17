from __future__ import annotations
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .base import Detector
from ..core.linestate import LineScanState, is_javascript_line
from ..core.models import (
    DEPRECATED_PHP_FEATURE,
    ERROR,
    PHP_VERSION_REQUIREMENT,
    REMOVED_PHP_FEATURE,
    WARNING,
    Finding,
)
from ..core.utils import clean_code, normalize_version, strip_comments, version_ge, version_lt

# Call of a global function: not a method, static call, variable function or JS member.
_FN = r"(?<![.$>:\\\w])"


@dataclass(frozen=True)
class FeatureRule:
    name: str
    pattern: re.Pattern
    version: str
    severity: str = ERROR
    suggestion: Optional[str] = None
    # Match against string literal bodies too (interpolation syntax lives there).
    in_strings: bool = False

    def matches(self, code: str, with_strings: str) -> bool:
        return bool(self.pattern.search(with_strings if self.in_strings else code))


def _rule(name, pattern, version, severity=ERROR, suggestion=None, in_strings=False, flags=0) -> FeatureRule:
    return FeatureRule(name, re.compile(pattern, flags), version, severity, suggestion, in_strings)


DEPRECATED_FEATURES: List[FeatureRule] = [
    _rule("each() function", _FN + r"\beach\s*\(", "7.2.0", suggestion="Use foreach loop instead"),
    _rule("create_function()", _FN + r"\bcreate_function\s*\(", "7.2.0",
          suggestion="Use anonymous functions instead"),
    _rule("assert() with string argument", _FN + r"\bassert\s*\(\s*[\"']", "7.2.0",
          suggestion="Use assert() with boolean expressions"),
    _rule("$php_errormsg variable", r"\$php_errormsg\b", "8.0.0", suggestion="Use error_get_last() instead"),
    _rule("strftime()", _FN + r"\b(?:gm)?strftime\s*\(", "8.1.0",
          suggestion="Use date() or IntlDateFormatter::format() instead"),
    _rule("utf8_encode()/utf8_decode()", _FN + r"\butf8_(?:en|de)code\s*\(", "8.2.0",
          suggestion="Use mb_convert_encoding() instead"),
    _rule("${} string interpolation", r"\"(?:[^\"\\]|\\.)*\$\{", "8.2.0", suggestion="Use {$var} interpolation instead",
          in_strings=True),
]

REMOVED_FEATURES: List[FeatureRule] = [
    _rule("mysql extension", _FN + r"\bmysql_\w+\s*\(", "7.0.0", suggestion="Use mysqli or PDO instead"),
    _rule("ereg functions", _FN + r"\b(?:ereg|eregi|ereg_replace|eregi_replace|split|spliti|sql_regcase)\s*\(",
          "7.0.0", suggestion="Use preg_* functions instead"),
    _rule("mcrypt extension", _FN + r"\bmcrypt_\w+\s*\(", "7.2.0",
          suggestion="Use openssl or sodium extension instead"),
    _rule("each() function", _FN + r"\beach\s*\(", "8.0.0", suggestion="Use foreach loop instead"),
    _rule("create_function()", _FN + r"\bcreate_function\s*\(", "8.0.0",
          suggestion="Use anonymous functions instead"),
    _rule("get_magic_quotes_gpc()", _FN + r"\bget_magic_quotes_gpc\s*\(", "8.0.0",
          suggestion="Magic quotes were removed, no replacement needed"),
    _rule("restore_include_path()", _FN + r"\brestore_include_path\s*\(", "8.0.0",
          suggestion="Use ini_restore() instead"),
    _rule("money_format()", _FN + r"\bmoney_format\s*\(", "8.0.0",
          suggestion="Use NumberFormatter::formatCurrency() instead"),
]

NEW_FEATURES: List[FeatureRule] = [
    _rule("Null coalescing operator", r"\?\?(?!=)", "7.0.0"),
    _rule("Spaceship operator", r"<=>", "7.0.0"),
    _rule("Anonymous classes", r"\bnew\s+class\b", "7.0.0"),
    _rule("Group use declarations", r"^\s*use\s+[\w\\]+\\\{", "7.0.0"),
    _rule("Null coalescing assignment", r"\?\?=", "7.4.0"),
    _rule("Arrow functions", r"(?<![>$:])\bfn\s*\([^)]*\)\s*(?::\s*\??[\w\\]+\s*)?=>", "7.4.0"),
    _rule("Typed properties",
          r"^\s*(?:public|private|protected|var)\s+(?:static\s+)?"
          r"(?!function\b|const\b|static\b|readonly\b|abstract\b|final\b)\??[A-Za-z_\\][\w\\|]*\s+\$\w+",
          "7.4.0"),
    _rule("Match expression", r"(?<![>:$])\bmatch\s*\(", "8.0.0", WARNING,
          "Use switch statement or upgrade to PHP 8.0+"),
    _rule("Named arguments", r"(?<![:>$])\b(?!(?:if|elseif|while|for|foreach|switch|match|array|list|fn|function)\b)"
          r"\w+\s*\(\s*[A-Za-z_]\w*\s*:(?!:)", "8.0.0", WARNING,
          "Use positional arguments or upgrade to PHP 8.0+"),
    _rule("Nullsafe operator", r"\?->", "8.0.0", WARNING, "Use null checks or upgrade to PHP 8.0+"),
    _rule("Constructor property promotion",
          r"\bfunction\s+__construct\s*\([^)]*\b(?:private|protected|public)\s+", "8.0.0", WARNING,
          "Declare and assign the properties explicitly or upgrade to PHP 8.0+", flags=re.IGNORECASE),
    _rule("Union types",
          r"(?:\bfunction\b|\bfn\b)[^;{]*\)\s*:\s*\??[\w\\]+\s*\|\s*[\w\\]+"
          r"|(?:\bfunction\s*&?\s*\w*\s*\(|\bfn\s*\(|,)\s*[\w\\]+\s*\|\s*[\w\\]+\s+&?(?:\.\.\.)?\$\w+",
          "8.0.0", WARNING, "Remove union type declarations or upgrade to PHP 8.0+"),
    _rule("Enums", r"^\s*enum\s+[A-Za-z_]\w*\s*(?::\s*\w+\s*)?(?:implements\s+[\w\\,\s]+)?\{?\s*$", "8.1.0"),
    _rule("Readonly properties",
          r"\b(?:(?:public|private|protected)\s+readonly|readonly\s+(?:public|private|protected))\b", "8.1.0"),
    _rule("First-class callable syntax", r"\w\s*\(\s*\.\.\.\s*\)", "8.1.0"),
    _rule("Readonly classes", r"^\s*(?:(?:final|abstract)\s+)*readonly\s+(?:(?:final|abstract)\s+)*class\b",
          "8.2.0"),
    _rule("Typed class constants",
          r"^\s*(?:(?:public|private|protected|final)\s+)*const\s+\??[A-Za-z_\\][\w\\|]*\s+[A-Za-z_]\w*\s*=",
          "8.3.0"),
]


class PHPVersionCompatibilityDetector(Detector):
    """
    Language features that the target PHP version does not support, has
    deprecated, or has removed.

    New syntax is matched against comment- and string-free code so a keyword in
    a message string never counts. When a feature is both deprecated and removed
    for the target version only the removal is reported.
    """
    NAME = "php_version"
    TITLE = "PHP Version Compatibility Detector"
    ORDER = 50

    def detect_lines(self, path: Path, lines: List[str], php_version: str, wp_version: str) -> List[Finding]:
        state = LineScanState()
        findings: List[Finding] = []
        current = normalize_version(php_version)
        for idx, raw in enumerate(lines):
            code = state.feed(raw)
            if code is None or state.in_script or is_javascript_line(raw):
                continue
            with_strings = strip_comments(code)
            bare = clean_code(code)
            if not bare.strip():
                continue
            findings.extend(self._check_line(path, idx + 1, bare, with_strings, php_version, current))
        return findings

    def _check_line(self, path: Path, line_no: int, code: str, with_strings: str,
                    php_version: str, current: str) -> List[Finding]:
        findings: List[Finding] = []
        removed_here = set()
        for rule in REMOVED_FEATURES:
            if version_ge(php_version, rule.version) and rule.matches(code, with_strings):
                removed_here.add(rule.name)
                findings.append(
                    self.finding(
                        REMOVED_PHP_FEATURE,
                        f"{rule.name} was removed in PHP {rule.version}",
                        path,
                        line_no,
                        ERROR,
                        rule.suggestion or "This feature is no longer available",
                        feature=rule.name,
                        removed_version=rule.version,
                        current_version=current,
                    )
                )
        for rule in DEPRECATED_FEATURES:
            if rule.name in removed_here:
                continue
            if version_ge(php_version, rule.version) and rule.matches(code, with_strings):
                findings.append(
                    self.finding(
                        DEPRECATED_PHP_FEATURE,
                        f"{rule.name} is deprecated since PHP {rule.version}",
                        path,
                        line_no,
                        WARNING,
                        rule.suggestion or "Consider using alternative approaches",
                        feature=rule.name,
                        deprecated_version=rule.version,
                        current_version=current,
                    )
                )
        for rule in NEW_FEATURES:
            if version_lt(php_version, rule.version) and rule.matches(code, with_strings):
                findings.append(
                    self.finding(
                        PHP_VERSION_REQUIREMENT,
                        f"{rule.name} requires PHP {rule.version} or higher",
                        path,
                        line_no,
                        rule.severity,
                        rule.suggestion or f"Upgrade PHP to version {rule.version} or higher, or use an alternative",
                        feature=rule.name,
                        required_version=rule.version,
                        current_version=current,
                    )
                )
        return findings
