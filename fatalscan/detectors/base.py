from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, FrozenSet, Iterable, List, Optional

from ..analysis.context import WordPressContextAnalyzer
from ..analysis.registry import SymbolRegistry
from ..core.models import ERROR, Finding
from ..core.php import PhpRuntime
from ..core.utils import read_lines
from ..ecosystems.dependency import DependencyExceptionManager
from ..ecosystems.widgets import WidgetExclusionManager


@dataclass
class DetectorServices:
    """Collaborators shared by every detector of one scan."""
    runtime: PhpRuntime = field(default_factory=PhpRuntime)
    exceptions: DependencyExceptionManager = field(default_factory=DependencyExceptionManager)
    widgets: WidgetExclusionManager = field(default_factory=WidgetExclusionManager)
    context: WordPressContextAnalyzer = field(default_factory=WordPressContextAnalyzer)
    registry: SymbolRegistry = field(default_factory=SymbolRegistry)


class Detector:
    """
    Base class for detectors. Subclasses set NAME, TITLE and ORDER and keep their
    rule tables as class attributes at the top. A detector reads one file per
    ``detect`` call and keeps no state between files; per-file parsing state
    lives in a local :class:`~fatalscan.core.linestate.LineScanState`.
    """
    NAME: str = ""
    TITLE: str = "Detector"
    ORDER: int = 100

    def __init__(self, services: Optional[DetectorServices] = None) -> None:
        self.services = services or DetectorServices()
        self.plugin_root: Optional[Path] = None

    def set_plugin_root(self, root: Path) -> None:
        self.plugin_root = Path(root)

    # Lifecycle hooks
    def begin(self, files: List[Path]) -> None:
        pass

    def end(self) -> None:
        pass

    def detect(self, file_path: Path, php_version: str, wp_version: str) -> List[Finding]:
        path = Path(file_path)
        lines = read_lines(path)
        if lines is None:
            return []
        return self.detect_lines(path, lines, php_version, wp_version)

    def detect_lines(self, path: Path, lines: List[str], php_version: str, wp_version: str) -> List[Finding]:
        raise NotImplementedError

    def finding(
        self,
        kind: str,
        message: str,
        path: Path,
        line: int,
        severity: str = ERROR,
        suggestion: Optional[str] = None,
        **context: Any,
    ) -> Finding:
        return Finding(
            kind=kind,
            message=message,
            file=path,
            line=line,
            severity=severity,
            suggestion=suggestion,
            context=context,
            plugin_root=self.plugin_root,
        )

    def relative_path(self, path: Path) -> str:
        if self.plugin_root is not None:
            try:
                return Path(path).resolve().relative_to(self.plugin_root.resolve()).as_posix()
            except ValueError:
                pass
        return Path(path).name


class EcosystemAware:
    """Capability mixin for detectors whose rules depend on the detected ecosystems."""

    _ecosystems: FrozenSet[str] = frozenset()

    def set_detected_ecosystems(self, ecosystems: Iterable[str]) -> None:
        self._ecosystems = frozenset(e.lower() for e in ecosystems)

    @property
    def ecosystems(self) -> FrozenSet[str]:
        return self._ecosystems
