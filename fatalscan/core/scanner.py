from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from tqdm import tqdm

from .config import ScanOptions
from .models import (
    DEPENDENCY_KINDS,
    UNDEFINED_CLASS,
    CombinationResult,
    Finding,
    PluginPathError,
    ScanResult,
)
from .php import PhpRuntime
from .walker import PluginFileWalker
from ..analysis.context import WordPressContextAnalyzer
from ..analysis.registry import SymbolRegistry
from ..detectors.base import Detector, DetectorServices, EcosystemAware
from ..ecosystems.dependency import DependencyExceptionManager
from ..ecosystems.detector import EcosystemDetector
from ..ecosystems.widgets import WidgetExclusionManager
from ..tables.wordpress import WORDPRESS_ADMIN_FUNCTIONS


DEFAULT_LOGGER_NAME = "fatalscan"
SLOW_SCAN_THRESHOLD_SECONDS = 2.0


def configure_logging(verbose: bool = False, logger_name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Configure and return the package logger.

    Library modules log through children of this logger, so one handler here
    covers the whole scan. Repeated calls only adjust the level.
    """

    logger = logging.getLogger(logger_name)
    level = logging.INFO if verbose else logging.WARNING
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s - %(message)s")
        )
        logger.addHandler(handler)

    return logger


def build_services(config: Optional[Dict[str, Any]] = None, options: Optional[ScanOptions] = None) -> DetectorServices:
    """Collaborators for one scan, with the JSON config layered onto the built-in tables."""
    config = config or {}
    options = options or ScanOptions()
    exceptions = DependencyExceptionManager()
    extra = config.get("dependency_exceptions")
    if isinstance(extra, dict):
        for ecosystem, table in extra.items():
            if isinstance(table, dict):
                exceptions.add_ecosystem_exceptions(ecosystem, table)
    widgets = WidgetExclusionManager(config=config)
    if options.reporting_mode:
        widgets.set_reporting_mode(options.reporting_mode)
    return DetectorServices(
        runtime=PhpRuntime(binary=options.php_binary),
        exceptions=exceptions,
        widgets=widgets,
        context=WordPressContextAnalyzer(),
        registry=SymbolRegistry(),
    )


def build_ecosystem_detector(config: Optional[Dict[str, Any]] = None) -> EcosystemDetector:
    detector = EcosystemDetector()
    extra = (config or {}).get("ecosystem_patterns")
    if isinstance(extra, dict):
        for ecosystem, signature in extra.items():
            if isinstance(signature, dict):
                detector.add_ecosystem_pattern(ecosystem, signature)
    return detector


class PluginScanner:
    """
    Runs the selected detectors over a plugin for every PHP x WordPress pair.

    The scan is two-phase: every file is ingested into the shared symbol
    registry and every detector's ``begin`` runs before the first per-file
    detection. Files are then scanned on a thread pool; each (file, detector)
    call is isolated so one failure only costs that file's findings from that
    detector.
    """

    def __init__(
        self,
        path: Path,
        detectors: Dict[str, Detector],
        services: Optional[DetectorServices] = None,
        options: Optional[ScanOptions] = None,
        *,
        ecosystem_detector: Optional[EcosystemDetector] = None,
        logger: Optional[logging.Logger] = None,
        progress_desc: str = "Scanning plugin",
    ) -> None:
        self.path = Path(path)
        self.detectors = detectors
        self.services = services or DetectorServices()
        self.options = options or ScanOptions()
        self.ecosystem_detector = ecosystem_detector or EcosystemDetector()
        base_logger = logger or logging.getLogger(DEFAULT_LOGGER_NAME)
        self.logger = base_logger.getChild(self.__class__.__name__.lower())
        self.verbose = self.options.verbose
        if self.verbose:
            self.logger.setLevel(logging.INFO)
        self.progress_desc = progress_desc
        self._progress_bar = None
        self._progress_lock = threading.Lock()
        self._slow_log_threshold = SLOW_SCAN_THRESHOLD_SECONDS
        self.root: Optional[Path] = None

    # ------------------------------------------------------------------
    # Setup

    def _resolve_target(self) -> Tuple[Path, List[Path]]:
        if not self.path.exists():
            raise PluginPathError(f"Plugin path does not exist: {self.path}")
        if self.path.is_file():
            if self.path.suffix.lower() != ".php":
                raise PluginPathError(f"Not a PHP file: {self.path}")
            return self.path.parent, [self.path]
        return self.path, PluginFileWalker(self.path).files()

    def _ecosystems(self, root: Path) -> List[str]:
        found = set()
        if self.options.detect_ecosystems:
            found.update(self.ecosystem_detector.detect(root))
        found.update(e.strip().lower() for e in self.options.forced_ecosystems if e.strip())
        return sorted(found)

    def _prepare(self, root: Path, files: List[Path], ecosystems: List[str]) -> None:
        for detector in self.detectors.values():
            detector.set_plugin_root(root)
            if isinstance(detector, EcosystemAware):
                detector.set_detected_ecosystems(ecosystems)

        registry = self.services.registry
        if registry.ingested_files == 0:
            # A single file still resolves symbols declared elsewhere in its plugin.
            registry_files = files if self.path.is_dir() else PluginFileWalker(root).files() or files
            registry.ingest(registry_files)

        for detector in self.detectors.values():
            detector.begin(files)

    # ------------------------------------------------------------------
    # Scan

    def scan(self) -> ScanResult:
        root, files = self._resolve_target()
        self.root = root
        ecosystems = self._ecosystems(root)
        result = ScanResult(plugin_root=root, files=files, ecosystems=ecosystems)

        if self.verbose:
            self.logger.info("Discovered %d PHP file(s) under %s", len(files), root)
            if ecosystems:
                self.logger.info("Ecosystems in effect: %s", ", ".join(ecosystems))

        combos = [(php, wp) for php in self.options.php_versions for wp in self.options.wp_versions]
        if not files:
            result.combinations = [CombinationResult(php, wp) for php, wp in combos]
            return result

        self._prepare(root, files, ecosystems)

        progress_bar = None
        if self.options.show_progress:
            progress_bar = tqdm(total=len(files) * len(combos), desc=self.progress_desc, unit="file")

        executor = ThreadPoolExecutor(max_workers=max(1, self.options.workers))
        try:
            self._progress_bar = progress_bar
            for php_version, wp_version in combos:
                findings = self._scan_combination(executor, files, php_version, wp_version)
                result.combinations.append(
                    CombinationResult(php_version, wp_version, self._filter(findings))
                )
        except KeyboardInterrupt:
            if self.verbose:
                self.logger.info("Scan interrupted by user; shutting down workers")
            raise
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
            if progress_bar is not None:
                progress_bar.close()
            self._progress_bar = None
            for detector in self.detectors.values():
                detector.end()
        return result

    def _scan_combination(self, executor: ThreadPoolExecutor, files: List[Path],
                          php_version: str, wp_version: str) -> List[Finding]:
        futures = {executor.submit(self._scan_file, path, php_version, wp_version): path for path in files}
        per_file: Dict[Path, List[Finding]] = {}
        for future in as_completed(futures):
            path = futures[future]
            try:
                per_file[path] = future.result()
            except Exception as exc:
                if self.verbose:
                    self.logger.exception("Error scanning %s", path)
                else:
                    self.logger.warning("Error scanning %s: %s", path, exc)
            finally:
                if self._progress_bar is not None:
                    self._progress_bar.update(1)
        ordered: List[Finding] = []
        for path in files:
            ordered.extend(per_file.get(path, []))
        return ordered

    def _scan_file(self, path: Path, php_version: str, wp_version: str) -> List[Finding]:
        file_size = self._safe_file_size(path)
        display_path = self._format_display_path(path)
        detector_count = len(self.detectors)
        self._update_current_file_display(display_path, php_version, wp_version)

        findings: List[Finding] = []
        start_time = time.perf_counter()
        try:
            for name, detector in self.detectors.items():
                try:
                    findings.extend(detector.detect(path, php_version, wp_version))
                except Exception as exc:
                    if self.verbose:
                        self.logger.exception("Detector %s failed on %s", name, path)
                    else:
                        self.logger.warning("Detector %s failed on %s: %s", name, path, exc)
        finally:
            duration = time.perf_counter() - start_time
            self._maybe_log_slow_file(display_path, duration, file_size, len(findings), detector_count)
        return findings

    # ------------------------------------------------------------------
    # Filtering

    def _filter(self, findings: Iterable[Finding]) -> List[Finding]:
        severities = set(self.options.severities)
        kept = [f for f in findings if f.severity in severities]
        if self.options.ignore_dependency_errors:
            kept = [f for f in kept if not self._is_dependency_error(f)]
        return kept

    def _is_dependency_error(self, finding: Finding) -> bool:
        if finding.kind not in DEPENDENCY_KINDS:
            return False
        exceptions = self.services.exceptions
        every = exceptions.known_ecosystems
        if finding.kind == UNDEFINED_CLASS:
            name = finding.context.get("class_name")
            return bool(name) and exceptions.is_class_excepted(name, every)
        name = finding.context.get("function")
        # Admin-only functions were already judged by their call context.
        if not name or name.lower() in WORDPRESS_ADMIN_FUNCTIONS:
            return False
        return exceptions.is_function_excepted(name, every)

    # ------------------------------------------------------------------
    # Progress and diagnostics

    def _format_display_path(self, path: Path) -> str:
        try:
            return str(path.relative_to(self.root))
        except (TypeError, ValueError):
            return str(path)

    def _safe_file_size(self, path: Path) -> Optional[int]:
        try:
            return path.stat().st_size
        except OSError as exc:
            if self.logger.isEnabledFor(logging.DEBUG):
                self.logger.debug("Unable to stat %s: %s", path, exc)
            return None

    def _update_current_file_display(self, display_path: str, php_version: str, wp_version: str) -> None:
        label = display_path
        if len(label) > 60:
            label = f"...{label[-57:]}"
        if self._progress_bar is not None:
            with self._progress_lock:
                self._progress_bar.set_postfix_str(f"PHP {php_version}/WP {wp_version} {label}", refresh=False)
                self._progress_bar.refresh()
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                "Processing %s (php=%s, wp=%s, detectors=%d)",
                display_path,
                php_version,
                wp_version,
                len(self.detectors),
            )

    def _maybe_log_slow_file(
        self,
        display_path: str,
        duration: float,
        file_size: Optional[int],
        finding_count: int,
        detector_count: int,
    ) -> None:
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        if duration < self._slow_log_threshold:
            return

        reasons: List[str] = []
        if file_size is not None and file_size >= 1_000_000:
            reasons.append("large file")
        if finding_count >= 500:
            reasons.append("many findings")
        if self.services.runtime.available and "syntax" in self.detectors:
            reasons.append("php lint")
        if not reasons:
            reasons.append("detector workload")

        size_str = f"{file_size:,} bytes" if file_size is not None else "unknown size"
        self.logger.debug(
            "Slow scan for %s took %.2fs (%s). size=%s, findings=%d, detectors=%d",
            display_path,
            duration,
            ", ".join(reasons),
            size_str,
            finding_count,
            detector_count,
        )
