from __future__ import annotations
import io
import re
import chardet  # type: ignore
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

BINARY_BYTES = bytes(range(0, 32)) + b"\x7f"


def is_likely_binary(data: bytes, control_threshold: float = 0.30) -> bool:
    if not data:
        return False
    if 0 in data:
        return True
    control = sum(1 for b in data if b in BINARY_BYTES and b not in (9, 10, 12, 13))
    return (control / len(data)) > control_threshold


def read_text_safely(path: Path, max_bytes: int = 20_000_000) -> Optional[str]:
    """Return the decoded text of ``path`` or ``None`` when it is unreadable or binary."""
    try:
        with Path(path).open("rb") as f:
            data = f.read(max_bytes)
    except OSError:
        return None
    if is_likely_binary(data[:4096]):
        return None
    # PHP sources are overwhelmingly UTF-8; only ask chardet when that fails.
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        pass
    enc = chardet.detect(data).get("encoding")
    for candidate in (enc, "latin-1"):
        if not candidate:
            continue
        try:
            return data.decode(candidate, errors="strict")
        except (LookupError, UnicodeDecodeError):
            continue
    return None


def iter_lines(text: str) -> Iterator[str]:
    buf = io.StringIO(text)
    for line in buf:
        yield line.rstrip("\r\n")


def read_lines(path: Path) -> Optional[List[str]]:
    text = read_text_safely(path)
    if text is None:
        return None
    return list(iter_lines(text))


# ---------------------------------------------------------------------------
# Source line cleaning


def _clean(line: str, drop_comments: bool, drop_strings: bool) -> str:
    out: List[str] = []
    i = 0
    n = len(line)
    quote: Optional[str] = None
    while i < n:
        ch = line[i]
        if quote:
            if ch == "\\" and i + 1 < n:
                if not drop_strings:
                    out.append(line[i:i + 2])
                i += 2
                continue
            if ch == quote:
                out.append(ch)
                quote = None
            elif not drop_strings:
                out.append(ch)
            i += 1
            continue
        if ch in ("'", '"', "`"):
            quote = ch
            out.append(ch)
            i += 1
            continue
        if drop_comments:
            two = line[i:i + 2]
            if two == "/*":
                end = line.find("*/", i + 2)
                if end == -1:
                    break
                i = end + 2
                continue
            if two == "//" or (ch == "#" and line[i + 1:i + 2] != "[" and (i == 0 or line[i - 1] in " \t;")):
                # A line comment stops at a closing PHP tag.
                close = line.find("?>", i)
                if close == -1:
                    break
                i = close
                continue
        out.append(ch)
        i += 1
    return "".join(out)


def strip_comments(line: str) -> str:
    """Remove ``//``, ``#`` and inline ``/* */`` comments, leaving string literals intact."""
    return _clean(line, drop_comments=True, drop_strings=False)


def strip_strings(line: str) -> str:
    """Blank the body of every quoted literal (``'abc'`` becomes ``''``)."""
    return _clean(line, drop_comments=False, drop_strings=True)


def clean_code(line: str) -> str:
    """Comment- and string-free rendition of a source line."""
    return _clean(line, drop_comments=True, drop_strings=True)


# ---------------------------------------------------------------------------
# Versions

_VERSION_PART_RE = re.compile(r"\d+")


def version_tuple(version: str) -> Tuple[int, int, int]:
    """Normalize ``"8"``, ``"8.1"`` or ``"8.1.2-dev"`` to a major.minor.patch tuple."""
    parts = [int(p) for p in _VERSION_PART_RE.findall(str(version))[:3]]
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def normalize_version(version: str) -> str:
    return ".".join(str(p) for p in version_tuple(version))


def version_lt(a: str, b: str) -> bool:
    return version_tuple(a) < version_tuple(b)


def version_ge(a: str, b: str) -> bool:
    return version_tuple(a) >= version_tuple(b)


def split_csv(value: Optional[str]) -> List[str]:
    return [t.strip() for t in (value or "").split(",") if t.strip()]


def find_outside_strings(line: str, token: str, start: int = 0) -> int:
    """Index of the first ``token`` at or after ``start`` that is not inside a quoted literal."""
    quote: Optional[str] = None
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif i >= start and line.startswith(token, i):
            return i
        i += 1
    return -1


def unclosed_quote(line: str) -> Optional[str]:
    """Quote character of a literal that is still open at the end of ``line``."""
    code = strip_comments(line)
    quote: Optional[str] = None
    i = 0
    while i < len(code):
        ch = code[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
        i += 1
    return quote


def closing_quote(line: str, quote: str) -> int:
    """Index of the unescaped ``quote`` that ends a literal opened on an earlier line."""
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i
        i += 1
    return -1


_OPEN_TAG_RE = re.compile(r"^\s*<\?(?:php\b|=)?\s*", re.IGNORECASE)


def strip_open_tag(code: str) -> str:
    """Drop a leading ``<?php`` so declarations on the opening line still match."""
    return _OPEN_TAG_RE.sub("", code, count=1)
