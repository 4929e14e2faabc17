from __future__ import annotations
import copy
import json
import logging
import re
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from ..core.utils import read_text_safely
from ..core.walker import PluginFileWalker
from .defaults import ECOSYSTEM_PATTERNS

logger = logging.getLogger(__name__)

# WordPress itself only reads the first 8 KB of a plugin file for headers.
HEADER_BYTES = 8192
REQUIRES_PLUGINS_RE = re.compile(r"^Requires Plugins:\s*(.+)$", re.IGNORECASE)


class EcosystemDetector:
    """Detects third-party plugin frameworks a plugin builds on.

    Signals, checked per ecosystem: plugin header lines, file path fragments,
    class/function signatures in the first ``MAX_CODE_FILES`` sources, and
    ``composer.json`` requirements.
    """

    MAX_CODE_FILES = 50

    def __init__(self, patterns: Optional[Dict[str, Dict[str, List[str]]]] = None) -> None:
        self.patterns: Dict[str, Dict[str, List[str]]] = copy.deepcopy(
            ECOSYSTEM_PATTERNS if patterns is None else patterns
        )
        self._detected: FrozenSet[str] = frozenset()

    # Extension API
    def add_ecosystem_pattern(self, name: str, signature: Dict[str, Iterable[str]]) -> "EcosystemDetector":
        current = self.patterns.setdefault(name.lower(), {})
        for key, values in signature.items():
            bucket = current.setdefault(key, [])
            for value in values:
                if value not in bucket:
                    bucket.append(value)
        return self

    def ecosystem_info(self, name: str) -> Optional[Dict[str, List[str]]]:
        sig = self.patterns.get(name.lower())
        return copy.deepcopy(sig) if sig is not None else None

    @property
    def detected(self) -> FrozenSet[str]:
        return self._detected

    def has_ecosystem(self, name: str) -> bool:
        return name.lower() in self._detected

    # Detection
    def detect(self, plugin_path: Path) -> FrozenSet[str]:
        root = Path(plugin_path)
        if root.is_file():
            root = root.parent
        if not root.is_dir():
            self._detected = frozenset()
            return self._detected

        header_lines = self._plugin_header_lines(root)
        required = self._required_plugins(header_lines)
        sources = self._sample_sources(root)
        composer = self._composer_packages(root)

        found: Set[str] = set()
        for name, sig in self.patterns.items():
            if name in required or self._matches_headers(header_lines, sig):
                found.add(name)
            elif self._matches_code(sources, sig):
                found.add(name)
            elif composer & set(sig.get("composer_packages", [])):
                found.add(name)

        self._detected = frozenset(found)
        if found:
            logger.info("Detected ecosystems for %s: %s", root.name, ", ".join(sorted(found)))
        return self._detected

    def _plugin_header_lines(self, root: Path) -> List[str]:
        candidates = sorted(p for p in root.glob("*.php") if p.is_file())
        heads: List[str] = []
        main: List[str] = []
        for path in candidates:
            text = read_text_safely(path, max_bytes=HEADER_BYTES)
            if not text:
                continue
            lines = [ln.strip().lstrip("/*#").strip() for ln in text.splitlines()]
            if any(ln.lower().startswith("plugin name:") for ln in lines):
                main.extend(lines)
            heads.extend(lines)
        return main or heads

    @staticmethod
    def _required_plugins(lines: List[str]) -> Set[str]:
        required: Set[str] = set()
        for line in lines:
            m = REQUIRES_PLUGINS_RE.match(line)
            if m:
                required.update(slug.strip().lower() for slug in m.group(1).split(",") if slug.strip())
        return required

    @staticmethod
    def _matches_headers(lines: List[str], sig: Dict[str, List[str]]) -> bool:
        headers = [h.lower() for h in sig.get("headers", [])]
        for line in lines:
            lowered = line.lower()
            if any(h in lowered for h in headers):
                return True
        return False

    def _sample_sources(self, root: Path) -> List[Tuple[str, str]]:
        files = PluginFileWalker(root).files()[: self.MAX_CODE_FILES]
        sources: List[Tuple[str, str]] = []
        for path in files:
            rel = "/" + path.relative_to(root).as_posix()
            sources.append((rel, read_text_safely(path) or ""))
        return sources

    @staticmethod
    def _matches_code(sources: List[Tuple[str, str]], sig: Dict[str, List[str]]) -> bool:
        file_patterns = [p.lower() for p in sig.get("file_patterns", [])]
        code_patterns = [p.lower() for p in sig.get("class_patterns", []) + sig.get("function_patterns", [])]
        for rel, content in sources:
            if any(p in rel.lower() for p in file_patterns):
                return True
            lowered = content.lower()
            if any(p in lowered for p in code_patterns):
                return True
        return False

    @staticmethod
    def _composer_packages(root: Path) -> Set[str]:
        manifest = root / "composer.json"
        if not manifest.is_file():
            return set()
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable composer.json in %s: %s", root, exc)
            return set()
        if not isinstance(data, dict):
            return set()
        packages: Set[str] = set()
        for section in ("require", "require-dev"):
            deps = data.get(section)
            if isinstance(deps, dict):
                packages.update(str(k).lower() for k in deps)
        return packages
