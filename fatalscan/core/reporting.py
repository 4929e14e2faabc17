from __future__ import annotations
import json
import os
import sys
from collections import Counter, OrderedDict
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from .models import ERROR, INFO, WARNING, CombinationResult, Finding, ScanResult

COLORS = {
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "cyan": "\033[36m",
    "white": "\033[37m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "reset": "\033[0m",
}
SEVERITY_COLORS = {ERROR: "red", WARNING: "yellow", INFO: "blue"}


def supports_colors(stream: TextIO) -> bool:
    if "NO_COLOR" in os.environ:
        return False
    if "FORCE_COLOR" in os.environ:
        return True
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _scalar_context(context: Dict[str, Any]) -> str:
    parts = [f"{k}: {v}" for k, v in context.items() if isinstance(v, (str, int, float)) and not isinstance(v, bool)]
    return ", ".join(parts)


def combination_label(combo: CombinationResult) -> str:
    return f"PHP {combo.php_version} + WordPress {combo.wp_version}"


class ConsoleReporter:
    """Human readable report: findings grouped by kind, then a summary and the version matrix."""

    def __init__(self, stream: Optional[TextIO] = None, use_colors: Optional[bool] = None) -> None:
        self.stream = stream or sys.stdout
        self.use_colors = supports_colors(self.stream) if use_colors is None else use_colors

    def colorize(self, text: str, color: str) -> str:
        if not self.use_colors or color not in COLORS:
            return text
        return f"{COLORS[color]}{text}{COLORS['reset']}"

    def _print(self, text: str = "") -> None:
        print(text, file=self.stream)

    def display_combination(self, combo: CombinationResult) -> None:
        if combo.passed:
            self._print(self.colorize(f"{combination_label(combo)}: no issues", "green"))
            return
        self._print(self.colorize(f"Issues found on PHP {combo.php_version}, WordPress {combo.wp_version}:", "yellow"))
        self._print(self.colorize("   " + "-" * 50, "dim"))
        grouped: "OrderedDict[str, List[Finding]]" = OrderedDict()
        for finding in combo.findings:
            grouped.setdefault(finding.kind, []).append(finding)
        for kind, findings in grouped.items():
            self._print(self.colorize(f"   {kind} ({len(findings)} issue(s)):", "cyan"))
            for finding in findings:
                self.display_finding(finding)
            self._print()

    def display_finding(self, finding: Finding) -> None:
        color = SEVERITY_COLORS.get(finding.severity, "white")
        self._print(f"      [{finding.severity}] " + self.colorize(finding.message, color))
        self._print("        " + self.colorize(f"Location: {finding.absolute_path}:{finding.line}", "dim"))
        if finding.relative_path != Path(finding.file).name:
            self._print("        " + self.colorize(f"Relative: {finding.location}", "dim"))
        if finding.suggestion:
            self._print("        " + self.colorize(f"Suggestion: {finding.suggestion}", "blue"))
        context = _scalar_context(finding.context)
        if context:
            self._print("        " + self.colorize(f"Context: {context}", "dim"))

    def display_summary(self, result: ScanResult, severities: List[str]) -> None:
        self._print(self.colorize("SUMMARY", "bold"))
        self._print(self.colorize("=" * 50, "dim"))
        fatal_only = list(severities) == [ERROR]
        if fatal_only:
            self._print("Filter: showing fatal errors only (use --show-all-errors to see warnings)")
        else:
            self._print(f"Filter: showing severity levels: {', '.join(severities)}")
        if result.ecosystems:
            self._print(f"Ecosystems: {', '.join(result.ecosystems)}")
        self._print(f"Files scanned: {len(result.files)}")
        self._print()

        if result.total_findings == 0:
            label = "No fatal errors detected" if fatal_only else "No issues detected"
            self._print(self.colorize(f"{label}.", "green"))
        else:
            by_severity = Counter(f.severity for c in result.combinations for f in c.findings)
            by_kind = Counter(f.kind for c in result.combinations for f in c.findings)
            label = "Fatal errors" if fatal_only else "Issues"
            self._print(self.colorize(f"{label} detected: {result.total_findings} total", "red"))
            self._print()
            self._print(self.colorize("By severity:", "bold"))
            for severity in (ERROR, WARNING, INFO):
                self._print(f"   {severity}: {by_severity.get(severity, 0)}")
            self._print(self.colorize("By kind:", "bold"))
            for kind, count in by_kind.most_common():
                self._print(f"   {kind}: {count}")
        self._print()
        self._print(self.colorize("Version compatibility matrix:", "bold"))
        for line in matrix_lines(result):
            status_color = "green" if line.endswith("Pass") else "red"
            head, status = line.rsplit(": ", 1)
            self._print(f"   {head}: " + self.colorize(status, status_color))

    def report(self, result: ScanResult, severities: List[str]) -> None:
        for combo in result.combinations:
            self.display_combination(combo)
        self._print()
        self.display_summary(result, severities)


def matrix_lines(result: ScanResult) -> List[str]:
    lines = []
    for combo in result.combinations:
        status = "Pass" if combo.passed else f"{len(combo.findings)} error(s)"
        lines.append(f"{combination_label(combo)}: {status}")
    return lines


class Reporter:
    """Writes scan artifacts: findings.json, findings.md, index.json and summary.md."""

    def __init__(self, out_dir: Path) -> None:
        self.out_dir = out_dir

    def write_all(self, result: ScanResult) -> Dict[str, Any]:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        self._write_findings_json(result)
        self._write_findings_md(result)

        index = [
            {
                "php_version": c.php_version,
                "wp_version": c.wp_version,
                "passed": c.passed,
                "findings": len(c.findings),
                ERROR: c.count(ERROR),
                WARNING: c.count(WARNING),
                INFO: c.count(INFO),
            }
            for c in result.combinations
        ]
        (self.out_dir / "index.json").write_text(json.dumps(index, indent=2))

        lines = ["# Scan Summary", ""]
        lines.append(f"- plugin: {result.plugin_root}")
        lines.append(f"- files: {len(result.files)}")
        lines.append(f"- ecosystems: {', '.join(result.ecosystems) or 'none'}")
        lines.append(f"- findings: {result.total_findings}")
        lines.append(f"- passed: {result.passed}")
        lines.append("")
        lines.append("## Version Matrix")
        lines.extend(f"- {line}" for line in matrix_lines(result))
        lines.append("")
        (self.out_dir / "summary.md").write_text("\n".join(lines))
        return {"findings": result.total_findings, "artifacts": 4}

    def _write_findings_json(self, result: ScanResult) -> None:
        data = []
        for combo in result.combinations:
            for finding in combo.findings:
                item = finding.to_dict()
                item["php_version"] = combo.php_version
                item["wp_version"] = combo.wp_version
                data.append(item)
        (self.out_dir / "findings.json").write_text(json.dumps(data, indent=2, default=str))

    def _write_findings_md(self, result: ScanResult) -> None:
        lines = ["# Findings", ""]
        for combo in result.combinations:
            lines.append(f"## {combination_label(combo)}")
            lines.append("")
            if combo.passed:
                lines.append("No issues.")
                lines.append("")
                continue
            for f in combo.findings:
                lines.append(f"- **kind**: {f.kind}  ")
                lines.append(f"  **severity**: {f.severity}  ")
                lines.append(f"  **location**: {f.location}  ")
                lines.append(f"  **message**: {f.message}  ")
                if f.suggestion:
                    lines.append(f"  **suggestion**: {f.suggestion}  ")
                if f.context:
                    lines.append(f"  **context**: `{json.dumps(f.context, default=str)}`  ")
                lines.append("")
        (self.out_dir / "findings.md").write_text("\n".join(lines))
