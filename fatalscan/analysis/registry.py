from __future__ import annotations
import logging
import re
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Set, Tuple

from ..core.linestate import LineScanState
from ..core.utils import clean_code, read_lines, strip_open_tag

logger = logging.getLogger(__name__)

NAMESPACE_RE = re.compile(r"^\s*namespace\s+([A-Za-z_][\w\\]*)\s*[;{]")
TYPE_DECL_RE = re.compile(
    r"^\s*(?:(?:abstract|final|readonly)\s+)*(class|interface|trait|enum)\s+([A-Za-z_]\w*)"
)
FUNCTION_DECL_RE = re.compile(r"\bfunction\s+&?\s*([A-Za-z_]\w*)\s*\(")
ANON_CLASS_RE = re.compile(r"\bnew\s+class\b", re.IGNORECASE)


def qualify(namespace: str, name: str) -> str:
    return f"{namespace}\\{name}" if namespace else name


def scan_declarations(lines: Iterable[str]) -> Tuple[List[Tuple[str, str, str, int]], Set[str]]:
    """Collect ``(kind, fqn, namespace, line)`` type declarations and declared function names.

    Only functions outside class-like bodies count; methods are not global functions.
    """
    types: List[Tuple[str, str, str, int]] = []
    functions: Set[str] = set()
    namespace = ""
    state = LineScanState()
    depth = 0
    # Brace depth at which each enclosing class-like body was opened.
    class_depths: List[int] = []
    body_pending = False
    for number, raw in enumerate(lines, start=1):
        code = state.feed(raw)
        if code is None:
            continue
        code = strip_open_tag(clean_code(code))
        m = NAMESPACE_RE.match(code)
        if m:
            namespace = m.group(1).strip("\\")
        else:
            m = TYPE_DECL_RE.match(code)
            if m:
                types.append((m.group(1), qualify(namespace, m.group(2)), namespace, number))
                body_pending = True

        declared = {fm.start(): fm.group(1) for fm in FUNCTION_DECL_RE.finditer(code)}
        anonymous = {am.start() for am in ANON_CLASS_RE.finditer(code)}
        for pos, ch in enumerate(code):
            if pos in anonymous:
                body_pending = True
            elif pos in declared and not class_depths:
                functions.add(declared[pos].lower())
            if ch == "{":
                if body_pending:
                    class_depths.append(depth)
                    body_pending = False
                depth += 1
            elif ch == "}":
                depth = max(depth - 1, 0)
                if class_depths and depth <= class_depths[-1]:
                    class_depths.pop()
    return types, functions


class SymbolRegistry:
    """Classes, interfaces, traits and functions declared anywhere in the plugin.

    Two-phase: :meth:`ingest` runs over every file before per-file detection so
    lookups never depend on file order. Lookups are case-insensitive.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._types: Dict[str, str] = {}
        self._short_names: Set[str] = set()
        self._namespaces: Set[str] = set()
        self._functions: Set[str] = set()
        self.ingested_files = 0

    def ingest(self, paths: Iterable[Path]) -> "SymbolRegistry":
        for path in paths:
            lines = read_lines(Path(path))
            if lines is None:
                logger.warning("Registry pre-scan could not read %s", path)
                continue
            types, functions = scan_declarations(lines)
            with self._lock:
                for _kind, fqn, namespace, _line in types:
                    self._add_type(fqn, namespace)
                self._functions.update(functions)
                self.ingested_files += 1
        logger.debug("Registry holds %d types and %d functions", len(self._types), len(self._functions))
        return self

    def _add_type(self, fqn: str, namespace: str) -> None:
        self._types[fqn.lower()] = fqn
        self._short_names.add(fqn.rsplit("\\", 1)[-1].lower())
        if namespace:
            self._namespaces.add(namespace.lower())

    def add_type(self, fqn: str, namespace: str = "") -> None:
        with self._lock:
            self._add_type(fqn.lstrip("\\"), namespace)

    def has_type(self, fqn: str) -> bool:
        return fqn.lstrip("\\").lower() in self._types

    def has_short_name(self, name: str) -> bool:
        return name.lower() in self._short_names

    def has_function(self, name: str) -> bool:
        return name.lower() in self._functions

    def __len__(self) -> int:
        return len(self._types)

    @property
    def namespaces(self) -> Set[str]:
        return set(self._namespaces)

