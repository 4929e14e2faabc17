from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


# Severities, strongest first.
ERROR = "error"
WARNING = "warning"
INFO = "info"
SEVERITIES: List[str] = [ERROR, WARNING, INFO]

# Finding kinds
UNDEFINED_FUNCTION = "UNDEFINED_FUNCTION"
UNDEFINED_CLASS = "UNDEFINED_CLASS"
CLASS_ALREADY_EXISTS = "CLASS_ALREADY_EXISTS"
WORDPRESS_CLASS_CONFLICT = "WORDPRESS_CLASS_CONFLICT"
PHP_CLASS_CONFLICT = "PHP_CLASS_CONFLICT"
DEPRECATED_PHP_FEATURE = "DEPRECATED_PHP_FEATURE"
REMOVED_PHP_FEATURE = "REMOVED_PHP_FEATURE"
PHP_VERSION_REQUIREMENT = "PHP_VERSION_REQUIREMENT"
DEPRECATED_FUNCTION = "DEPRECATED_FUNCTION"
REMOVED_FUNCTION = "REMOVED_FUNCTION"
VERSION_REQUIREMENT = "VERSION_REQUIREMENT"
DEPRECATED_HOOK = "DEPRECATED_HOOK"
SYNTAX_ERROR = "SYNTAX_ERROR"
FATAL_SYNTAX_ERROR = "FATAL_SYNTAX_ERROR"
MISSING_SEMICOLON = "MISSING_SEMICOLON"
UNMATCHED_BRACKETS = "UNMATCHED_BRACKETS"
TEMPLATE_METHOD_CONTEXT_ERROR = "TEMPLATE_METHOD_CONTEXT_ERROR"
THIS_CONTEXT_ERROR = "THIS_CONTEXT_ERROR"

DEPENDENCY_KINDS = frozenset({UNDEFINED_FUNCTION, UNDEFINED_CLASS})


@dataclass(frozen=True)
class Finding:
    """One potential fatal-error site.

    ``context`` is free-form and only read by reporters and tests.
    """
    kind: str
    message: str
    file: Path
    line: int
    severity: str = ERROR
    suggestion: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict, compare=False)
    plugin_root: Optional[Path] = field(default=None, compare=False)

    @property
    def absolute_path(self) -> Path:
        return Path(self.file).resolve()

    @property
    def relative_path(self) -> str:
        if self.plugin_root is None:
            return str(self.file)
        try:
            return Path(self.file).resolve().relative_to(Path(self.plugin_root).resolve()).as_posix()
        except ValueError:
            return str(self.file)

    @property
    def location(self) -> str:
        return f"{self.relative_path}:{self.line}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "file": str(self.absolute_path),
            "relative_file": self.relative_path,
            "line": self.line,
            "severity": self.severity,
            "suggestion": self.suggestion,
            "context": dict(self.context),
        }

    def __str__(self) -> str:
        return f"[{self.severity}] {self.kind}: {self.message} ({Path(self.file).name}:{self.line})"


@dataclass
class CombinationResult:
    php_version: str
    wp_version: str
    findings: List[Finding] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.findings

    def count(self, severity: str) -> int:
        return sum(1 for f in self.findings if f.severity == severity)


@dataclass
class ScanResult:
    plugin_root: Path
    files: List[Path]
    ecosystems: List[str]
    combinations: List[CombinationResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.combinations)

    @property
    def total_findings(self) -> int:
        return sum(len(c.findings) for c in self.combinations)


class FatalScanError(Exception):
    """Base error for the scanner."""


class PluginPathError(FatalScanError):
    pass


class ConfigError(FatalScanError):
    pass
