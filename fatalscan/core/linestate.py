from __future__ import annotations
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .utils import find_outside_strings

HEREDOC_START_RE = re.compile(r"<<<\s*([\"']?)([A-Za-z_]\w*)\1\s*$")
SCRIPT_OPEN_RE = re.compile(r"<script\b[^>]*>", re.IGNORECASE)
SCRIPT_CLOSE_RE = re.compile(r"</script\s*>", re.IGNORECASE)


def line_comment_start(code: str) -> int:
    """Index of the first ``//`` or ``#`` comment outside string literals, or -1.

    ``#[`` opens a PHP 8 attribute, not a comment.
    """
    slashes = find_outside_strings(code, "//")
    pos = find_outside_strings(code, "#")
    while pos != -1 and code.startswith("#[", pos):
        pos = find_outside_strings(code, "#", pos + 1)
    starts = [p for p in (slashes, pos) if p != -1]
    return min(starts) if starts else -1


def closed_literal_spans(code: str) -> List[Tuple[int, int]]:
    """``(open, close)`` quote positions of literals that end on this line."""
    spans: List[Tuple[int, int]] = []
    quote: Optional[str] = None
    start = 0
    i = 0
    while i < len(code):
        ch = code[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                spans.append((start, i))
                quote = None
        elif ch in ("'", '"'):
            quote = ch
            start = i
        i += 1
    return spans


@dataclass
class LineScanState:
    """Per-file tracker for spans that must not be matched as PHP code.

    A fresh instance is created for every file; nothing carries over between files.
    Feed each line in order with :meth:`feed`, which returns the executable part of
    the line or ``None`` when the whole line sits in a block comment or heredoc body.
    """
    in_comment: bool = False
    in_heredoc: bool = False
    heredoc_marker: Optional[str] = None
    in_script: bool = False

    def feed(self, line: str) -> Optional[str]:
        if self.in_heredoc:
            if re.match(rf"^\s*{re.escape(self.heredoc_marker or '')}\b", line):
                self.in_heredoc = False
                self.heredoc_marker = None
            return None

        code = line
        if self.in_comment:
            end = code.find("*/")
            if end == -1:
                return None
            self.in_comment = False
            code = code[end + 2:]

        code = self._drop_block_comments(code)
        if self.in_comment and not code.strip():
            return None

        m = HEREDOC_START_RE.search(code)
        if m:
            self.in_heredoc = True
            self.heredoc_marker = m.group(2)
            return None

        self._update_script(code)
        return code

    @property
    def skipping(self) -> bool:
        return self.in_comment or self.in_heredoc

    def _drop_block_comments(self, code: str) -> str:
        while True:
            pos = find_outside_strings(code, "/*")
            if pos == -1:
                return code
            line_comment = line_comment_start(code)
            if line_comment != -1 and line_comment < pos:
                return code
            end = code.find("*/", pos + 2)
            if end == -1:
                self.in_comment = True
                return code[:pos]
            code = code[:pos] + " " + code[end + 2:]

    def _update_script(self, code: str) -> None:
        literals = closed_literal_spans(code)

        def outside(pos: int) -> bool:
            return not any(start < pos < end for start, end in literals)

        opened = [m.start() for m in SCRIPT_OPEN_RE.finditer(code) if outside(m.start())]
        closed = [m.start() for m in SCRIPT_CLOSE_RE.finditer(code) if outside(m.start())]
        last_open = opened[-1] if opened else -1
        last_close = closed[-1] if closed else -1
        if last_open > last_close:
            self.in_script = True
        elif last_close != -1:
            self.in_script = False


JS_LINE_RES = [
    re.compile(r"\$\s*\(\s*[\"'\w]"),
    re.compile(r"\bjQuery\s*[\(.]"),
    re.compile(r"<script\b", re.IGNORECASE),
    re.compile(r"</script", re.IGNORECASE),
    re.compile(r"\becho\s+[\"']<script", re.IGNORECASE),
    re.compile(r"\.each\s*\("),
    re.compile(r"\bdocument\.\w+"),
    re.compile(r"\bwindow\.\w+"),
    re.compile(r"^\s*(?:var|let)\s+[A-Za-z_]\w*\s*="),
]


def is_javascript_line(line: str) -> bool:
    """Heuristic for JavaScript echoed from PHP outside explicit script blocks."""
    return any(rx.search(line) for rx in JS_LINE_RES)
