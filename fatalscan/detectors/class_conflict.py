from __future__ import annotations
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .base import Detector, EcosystemAware
from ..analysis.registry import NAMESPACE_RE, TYPE_DECL_RE, qualify, scan_declarations
from ..core.linestate import LineScanState, is_javascript_line
from ..core.models import (
    CLASS_ALREADY_EXISTS,
    ERROR,
    PHP_CLASS_CONFLICT,
    UNDEFINED_CLASS,
    WORDPRESS_CLASS_CONFLICT,
    Finding,
)
from ..core.utils import clean_code, strip_comments, strip_open_tag
from ..tables.php import BUILTIN_CLASSES
from ..tables.wordpress import WORDPRESS_CORE_CLASSES

_NAME = r"\\?[A-Za-z_][\w\\]*"
_WP_CORE = frozenset(c.lower() for c in WORDPRESS_CORE_CLASSES)

# (positive, first line, last line, lower-cased guarded name)
GuardRange = Tuple[bool, int, int, str]


def _normalize_class_literal(value: str) -> str:
    return value.replace("\\\\", "\\").lstrip("\\").lower()


class ClassConflictDetector(EcosystemAware, Detector):
    """
    Class declaration conflicts and references to classes nobody defines.

    ``begin`` ingests every plugin file into the shared symbol registry so a
    usage resolves no matter which file declares the class. Declarations are
    only checked for conflicts in the global namespace; a namespaced class can
    not collide with WordPress or PHP.
    """
    NAME = "class_conflict"
    TITLE = "Class Conflict Detector"
    ORDER = 30

    # Settings
    USAGE_PATTERNS = [
        ("new", re.compile(r"\bnew\s+(" + _NAME + r")\s*\(")),
        ("static", re.compile(r"(?<![\w\\$>:])(" + _NAME + r")\s*::")),
        ("instanceof", re.compile(r"\binstanceof\s+(" + _NAME + r")")),
    ]
    LIST_PATTERNS = [
        ("extends", re.compile(r"\bextends\s+(" + _NAME + r"(?:\s*,\s*" + _NAME + r")*)")),
        ("implements", re.compile(r"\bimplements\s+(" + _NAME + r"(?:\s*,\s*" + _NAME + r")*)")),
    ]
    RESERVED = frozenset({"self", "parent", "static"})
    HTML_CLASS_ATTR_RE = re.compile(r"\bclass\s*=")
    GUARD_RE = re.compile(
        r"(!?)\s*\\?(?:class|interface|trait|enum)_exists\s*\(\s*[\"']([^\"']+)[\"']", re.IGNORECASE
    )
    EARLY_EXIT_RE = re.compile(r"\b(?:return|exit|die|throw)\b")
    USE_RE = re.compile(r"^\s*use\s+(?!function\b|const\b)(.+)$", re.IGNORECASE)

    def begin(self, files: List[Path]) -> None:
        registry = self.services.registry
        if registry.ingested_files == 0:
            registry.ingest(files)

    def detect_lines(self, path: Path, lines: List[str], php_version: str, wp_version: str) -> List[Finding]:
        declared_types, _functions = scan_declarations(lines)
        local_types = {fqn.lower() for _kind, fqn, _ns, _line in declared_types}
        local_short = {fqn.rsplit("\\", 1)[-1].lower() for fqn in local_types}
        guards = self._guard_ranges(lines)

        findings: List[Finding] = []
        state = LineScanState()
        namespace = ""
        braced_namespace = False
        imports: Dict[str, str] = {}
        depth = 0
        pending_use: Optional[str] = None

        for idx, raw in enumerate(lines):
            line_no = idx + 1
            code = state.feed(raw)
            if code is None:
                continue
            code = strip_open_tag(clean_code(code))
            top_level = depth == (1 if braced_namespace else 0)

            if pending_use is not None:
                pending_use += " " + code.strip()
                if ";" in code:
                    imports.update(self._parse_use(pending_use.split(";", 1)[0]))
                    pending_use = None
            else:
                ns = NAMESPACE_RE.match(code)
                if ns:
                    namespace = ns.group(1).strip("\\")
                    braced_namespace = code.rstrip().endswith("{")
                    imports = {}
                elif top_level and self.USE_RE.match(code):
                    clause = self.USE_RE.match(code).group(1)
                    if ";" in clause:
                        imports.update(self._parse_use(clause.split(";", 1)[0]))
                    else:
                        pending_use = clause

            depth += code.count("{") - code.count("}")
            if depth <= 0:
                depth = 0
                if braced_namespace and "}" in code:
                    namespace, braced_namespace, imports = "", False, {}

            if state.in_script or is_javascript_line(raw):
                continue

            decl = TYPE_DECL_RE.match(code)
            if decl:
                findings.extend(
                    self._check_declaration(path, line_no, decl.group(1), decl.group(2), namespace, guards)
                )
                self.services.registry.add_type(qualify(namespace, decl.group(2)), namespace)

            if self.HTML_CLASS_ATTR_RE.search(raw) and "<?" not in raw:
                continue
            seen: Set[str] = set()
            for usage, name in self._usages(code):
                key = name.lower()
                if key in seen:
                    continue
                seen.add(key)
                if self._is_known(name, namespace, imports, local_types, local_short):
                    continue
                if self._is_guarded(name, namespace, imports, line_no, guards):
                    continue
                display = name.lstrip("\\")
                findings.append(
                    self.finding(
                        UNDEFINED_CLASS,
                        f"Class '{display}' not found",
                        path,
                        line_no,
                        ERROR,
                        f"Ensure class '{display}' is defined or properly included",
                        class_name=display,
                        usage=usage,
                        namespace=namespace,
                    )
                )
        return findings

    # ------------------------------------------------------------------
    # Declarations

    def _check_declaration(self, path: Path, line_no: int, kind: str, name: str, namespace: str,
                           guards: List[GuardRange]) -> List[Finding]:
        conflicts: List[Finding] = []
        if namespace:
            return conflicts
        lowered = name.lower()
        # A polyfill declared under ``if (!class_exists('X'))`` only runs when X is missing.
        if any(not positive and first <= line_no <= last and guarded == lowered
               for positive, first, last, guarded in guards):
            return conflicts
        if lowered in _WP_CORE:
            conflicts.append(self.finding(
                WORDPRESS_CLASS_CONFLICT,
                f"Class '{name}' conflicts with WordPress core class",
                path,
                line_no,
                ERROR,
                "Use a different class name with a unique prefix to avoid conflicts",
                class_name=name,
                declaration=kind,
                type="wordpress_core",
            ))
        if lowered in BUILTIN_CLASSES:
            conflicts.append(self.finding(
                PHP_CLASS_CONFLICT,
                f"Class '{name}' conflicts with PHP built-in class",
                path,
                line_no,
                ERROR,
                "Use a different class name to avoid conflicts with PHP built-in classes",
                class_name=name,
                declaration=kind,
                type="php_builtin",
            ))
        if lowered in self.services.runtime.declared_classes:
            conflicts.append(self.finding(
                CLASS_ALREADY_EXISTS,
                f"Cannot redeclare {kind} '{name}'",
                path,
                line_no,
                ERROR,
                f"Use a different {kind} name or check for duplicate {kind} declarations",
                class_name=name,
                declaration=kind,
                type="already_loaded",
            ))
        return conflicts

    # ------------------------------------------------------------------
    # Usages

    def _usages(self, code: str) -> Iterable[Tuple[str, str]]:
        for usage, rx in self.USAGE_PATTERNS:
            for m in rx.finditer(code):
                if self._is_class_token(m.group(1)):
                    yield usage, m.group(1)
        for usage, rx in self.LIST_PATTERNS:
            for m in rx.finditer(code):
                for name in m.group(1).split(","):
                    name = name.strip()
                    if self._is_class_token(name):
                        yield usage, name

    def _is_class_token(self, name: str) -> bool:
        short = name.rstrip("\\").rsplit("\\", 1)[-1]
        if not short or short.lower() in self.RESERVED:
            return False
        return short[0].isupper()

    @staticmethod
    def _parse_use(clause: str) -> Dict[str, str]:
        """``use A\\B, C as D`` and ``use A\\{B, C as D}`` into an alias map."""
        imports: Dict[str, str] = {}
        clause = clause.strip()
        prefix = ""
        group = re.match(r"^([\w\\]*?)\\?\{(.*)\}\s*$", clause, re.DOTALL)
        if group:
            prefix = group.group(1).strip("\\")
            clause = group.group(2)
        for item in clause.split(","):
            item = item.strip()
            if not item:
                continue
            parts = re.split(r"\s+as\s+", item, flags=re.IGNORECASE)
            target = parts[0].strip().strip("\\")
            if prefix:
                target = f"{prefix}\\{target}"
            alias = parts[1].strip() if len(parts) > 1 else target.rsplit("\\", 1)[-1]
            imports[alias.lower()] = target
        return imports

    @staticmethod
    def _candidates(name: str, namespace: str, imports: Dict[str, str]) -> List[str]:
        if name.startswith("\\"):
            return [name.lstrip("\\")]
        first, _sep, rest = name.partition("\\")
        if first.lower() in imports:
            resolved = imports[first.lower()]
            return [f"{resolved}\\{rest}" if rest else resolved]
        candidates = [qualify(namespace, name)]
        if namespace:
            candidates.append(name)
        return candidates

    def _is_known(self, name: str, namespace: str, imports: Dict[str, str],
                  local_types: Set[str], local_short: Set[str]) -> bool:
        bare = name.lstrip("\\")
        short = bare.rsplit("\\", 1)[-1]
        lowered_short = short.lower()
        if lowered_short in BUILTIN_CLASSES or lowered_short in _WP_CORE:
            return True
        if lowered_short in self.services.runtime.declared_classes:
            return True
        candidates = self._candidates(name, namespace, imports)
        registry = self.services.registry
        for candidate in candidates:
            if candidate.lower() in local_types or registry.has_type(candidate):
                return True
        if lowered_short in local_short or registry.has_short_name(short):
            return True
        exceptions = self.services.exceptions
        for candidate in [bare, short, *candidates]:
            if exceptions.is_class_excepted(candidate, self.ecosystems):
                return True
        return False

    # ------------------------------------------------------------------
    # class_exists() guards

    def _guard_ranges(self, lines: List[str]) -> List[GuardRange]:
        ranges: List[GuardRange] = []
        for idx, raw in enumerate(lines):
            text = strip_comments(raw)
            for m in self.GUARD_RE.finditer(text):
                positive = not m.group(1)
                guarded = _normalize_class_literal(m.group(2))
                first = idx + 1
                if not positive and self.EARLY_EXIT_RE.search(self._guard_tail(lines, idx, m.end())):
                    # ``if (!class_exists('X')) return;`` protects the rest of the file.
                    ranges.append((True, first, len(lines), guarded))
                    continue
                ranges.append((positive, first, self._block_end(lines, idx, m.end()), guarded))
        return ranges

    @staticmethod
    def _guard_tail(lines: List[str], idx: int, offset: int) -> str:
        tail = clean_code(lines[idx][offset:])
        if idx + 1 < len(lines):
            tail += " " + clean_code(lines[idx + 1])
        return tail

    @staticmethod
    def _block_end(lines: List[str], idx: int, offset: int) -> int:
        """Last line of the block that follows a guard, or the next line for a brace-less body."""
        depth = 0
        opened = False
        for j in range(idx, len(lines)):
            code = clean_code(lines[j][offset:] if j == idx else lines[j])
            for ch in code:
                if ch == "{":
                    depth += 1
                    opened = True
                elif ch == "}":
                    depth -= 1
                    if opened and depth == 0:
                        return j + 1
            if not opened and j > idx:
                return j + 1
        return len(lines)

    def _is_guarded(self, name: str, namespace: str, imports: Dict[str, str], line_no: int,
                    guards: List[GuardRange]) -> bool:
        wanted = {name.lstrip("\\").lower()}
        wanted.update(c.lower() for c in self._candidates(name, namespace, imports))
        return any(positive and first <= line_no <= last and guarded in wanted
                   for positive, first, last, guarded in guards)
