from __future__ import annotations
import re
from pathlib import Path
from typing import List, Optional, Set, Tuple

from .base import Detector
from ..core.linestate import LineScanState, is_javascript_line
from ..core.models import (
    ERROR,
    FATAL_SYNTAX_ERROR,
    MISSING_SEMICOLON,
    SYNTAX_ERROR,
    UNMATCHED_BRACKETS,
    WARNING,
    Finding,
)
from ..core.utils import clean_code, closing_quote, find_outside_strings, unclosed_quote


class SyntaxErrorDetector(Detector):
    """
    Syntax checks for one file.

    When a PHP binary is available the file is linted with ``php -l`` and every
    reported parse or fatal error becomes a finding. Independently, two
    conservative line heuristics look for a missing semicolon and for unbalanced
    brackets. The heuristics prefer silence over noise: every line shape that is
    routinely split across lines in WordPress code is left alone.
    """
    NAME = "syntax"
    TITLE = "Syntax Error Detector"
    ORDER = 10

    # Settings
    LINT_PATTERNS = [
        (SYNTAX_ERROR, re.compile(r"Parse error:\s*(.+) in .+ on line (\d+)")),
        (FATAL_SYNTAX_ERROR, re.compile(r"Fatal error:\s*(.+) in .+ on line (\d+)")),
    ]
    LINT_SUGGESTIONS = {
        SYNTAX_ERROR: "Fix the syntax error in the specified line",
        FATAL_SYNTAX_ERROR: "Fix the fatal syntax error in the specified line",
    }
    MAX_BRACKET_IMBALANCE = 3

    CONTROL_RE = re.compile(
        r"^(?:if|else|elseif|else\s+if|while|for|foreach|switch|case|default|try|catch|finally|do|declare|match)\b"
    )
    DECLARATION_RE = re.compile(
        r"^(?:abstract|final|public|private|protected|static|function|fn|class|interface|trait|enum|"
        r"namespace|use|const|var|readonly|global|goto)\b"
    )
    HEADER_RE = re.compile(r"\bfunction\b\s*&?\s*\w*\s*\(|\bfn\s*\(|^\s*(?:abstract\s+|final\s+)?class\b")
    HOOK_CALL_RE = re.compile(r"^(?:add_action|add_filter|do_action|apply_filters|remove_action|remove_filter)\s*\(")
    TRAILING_CONTINUATION = (
        ";", "{", "}", ",", ":", "(", "[", ".", "?", "=", "+", "-", "*", "/", "%",
        "&", "|", "!", "<", ">", "\\", "^", "~",
    )
    CONTINUATION_START_RE = re.compile(
        r"^(?:\.|\(|\[|->|\?->|\?|:|\)|\]|&&|\|\||\+|-(?!-)|\*|/(?!/)|%|=|\?>|and\b|or\b|xor\b|instanceof\b)"
    )
    NEXT_STATEMENT_RE = re.compile(
        r"^(?:\$|\}|echo\b|print\b|return\b|throw\b|if\b|foreach\b|for\b|while\b|switch\b|[A-Za-z_\\][\w\\]*\s*\()"
    )

    ASSIGNMENT_RE = re.compile(
        r"^\$[A-Za-z_]\w*(?:\s*(?:\[[^\]]*\]|->\s*\w+))*\s*(?:[.+\-*/%]|\?\?|\*\*)?=(?![=>])\s*\S"
    )
    OUTPUT_RE = re.compile(r"^(?:echo|print|throw)\s+(?:\$|[\"']|new\b|[A-Za-z_\\][\w\\]*\s*\()")
    BARE_CALL_RE = re.compile(r"^[A-Za-z_\\][\w\\]*\s*\(.*\)$")
    STATEMENT_START_RE = re.compile(r"^(?:\$[A-Za-z_]\w*[^=]*?(?<![=!<>])=(?![=>])|(?:echo|print|return|throw)\b)")

    OPENERS = "([{"
    CLOSERS = ")]}"

    def detect_lines(self, path: Path, lines: List[str], php_version: str, wp_version: str) -> List[Finding]:
        findings = self._lint(path)
        findings.extend(self._heuristics(path, lines))
        return findings

    # ------------------------------------------------------------------
    # php -l

    def _lint(self, path: Path) -> List[Finding]:
        output = self.services.runtime.lint(path)
        if not output:
            return []
        findings: List[Finding] = []
        seen: Set[Tuple[str, int]] = set()
        for raw in output.splitlines():
            for kind, rx in self.LINT_PATTERNS:
                m = rx.search(raw)
                if not m:
                    continue
                message = m.group(1).strip()
                line = int(m.group(2))
                if (message, line) in seen:
                    continue
                seen.add((message, line))
                findings.append(
                    self.finding(kind, message, path, line, ERROR, self.LINT_SUGGESTIONS[kind], source="php -l")
                )
        return findings

    # ------------------------------------------------------------------
    # Heuristics

    def _code_lines(self, lines: List[str]) -> List[Optional[str]]:
        """Comment- and string-free code per line, ``None`` for lines that must not be judged."""
        state = LineScanState()
        open_quote: Optional[str] = None
        out: List[Optional[str]] = []
        for raw in lines:
            code = state.feed(raw)
            if code is None:
                out.append(None)
                continue
            if open_quote:
                # Tail of a literal that started on an earlier line.
                end = closing_quote(code, open_quote)
                if end == -1:
                    out.append(None)
                    continue
                code = code[end + 1:]
                open_quote = unclosed_quote(code)
                out.append(None)
                continue
            close_tag = find_outside_strings(code, "?>")
            if close_tag != -1:
                # Text after a closing tag is markup, not PHP literals.
                open_quote = unclosed_quote(code[:close_tag])
                out.append(None)
                continue
            open_quote = unclosed_quote(code)
            if open_quote or state.in_script or "<?" in code or is_javascript_line(raw):
                out.append(None)
                continue
            out.append(clean_code(code).strip())
        return out

    def _heuristics(self, path: Path, lines: List[str]) -> List[Finding]:
        codes = self._code_lines(lines)
        findings: List[Finding] = []
        for idx, code in enumerate(codes):
            if not code:
                continue
            line_no = idx + 1
            if self._missing_semicolon(code, self._next_code(codes, idx)):
                findings.append(
                    self.finding(
                        MISSING_SEMICOLON,
                        "Possible missing semicolon",
                        path,
                        line_no,
                        WARNING,
                        "Add semicolon at the end of the statement",
                        code=lines[idx].strip(),
                    )
                )
            elif self._unmatched_brackets(code):
                findings.append(
                    self.finding(
                        UNMATCHED_BRACKETS,
                        "Possible unmatched brackets",
                        path,
                        line_no,
                        WARNING,
                        "Check bracket matching in this line",
                        code=lines[idx].strip(),
                    )
                )
        return findings

    @staticmethod
    def _next_code(codes: List[Optional[str]], idx: int) -> Optional[str]:
        for code in codes[idx + 1:]:
            if code is None:
                # Unjudged line: treat as unknown continuation.
                return ""
            if code:
                return code
        return None

    def _balance(self, code: str) -> int:
        return sum(code.count(c) for c in self.OPENERS) - sum(code.count(c) for c in self.CLOSERS)

    def _missing_semicolon(self, code: str, next_code: Optional[str]) -> bool:
        if code.startswith(("<", "#", "*", "@")) or code.startswith(tuple(self.CLOSERS)):
            return False
        if self.CONTROL_RE.match(code) or self.DECLARATION_RE.match(code) or self.HOOK_CALL_RE.match(code):
            return False
        if code.endswith(self.TRAILING_CONTINUATION) or self._balance(code) != 0:
            return False
        if not (self.ASSIGNMENT_RE.match(code) or self.OUTPUT_RE.match(code) or self.BARE_CALL_RE.match(code)):
            return False
        if next_code is not None:
            if not next_code or self.CONTINUATION_START_RE.match(next_code):
                return False
        if code.endswith((")", "]")):
            return next_code is not None and bool(self.NEXT_STATEMENT_RE.match(next_code))
        return True

    def _unmatched_brackets(self, code: str) -> bool:
        diff = self._balance(code)
        if diff == 0 or abs(diff) > self.MAX_BRACKET_IMBALANCE:
            return False
        if code.startswith(("<", "#", "*")) or code.startswith(tuple(self.CLOSERS)):
            return False
        if code.endswith(",") or re.fullmatch(r"[\s(\[{]+", code) or re.fullmatch(r"[\s)\]};,]+", code):
            return False
        if self.CONTROL_RE.match(code) or self.DECLARATION_RE.match(code) or self.HEADER_RE.search(code):
            return False
        if diff > 0:
            # An opener left open without a terminator continues on the next lines.
            if not code.endswith(";") or re.search(r"\barray\s*\(", code):
                return False
            return True
        # Surplus closers close something opened earlier unless the line starts a statement.
        return bool(self.STATEMENT_START_RE.match(code)) and code.endswith(";")
