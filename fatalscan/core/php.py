from __future__ import annotations
import json
import logging
import shutil
import subprocess
import threading
from pathlib import Path
from typing import Dict, FrozenSet, Optional

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

_PROBE_SCRIPT = (
    'echo json_encode(['
    '"functions" => get_defined_functions()["internal"],'
    '"classes" => array_merge(get_declared_classes(), get_declared_interfaces(), get_declared_traits())'
    ']);'
)


class PhpRuntime:
    """Bridge to a host PHP binary.

    Every call spawns a short-lived process bounded by ``timeout``. Any failure
    (missing binary, timeout, unexpected output) degrades to "no answer" so the
    heuristic detectors keep working without PHP installed.
    """

    def __init__(self, binary: Optional[str] = "php", timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.binary = binary
        self.timeout = timeout
        self._resolved: Optional[str] = None
        self._resolved_checked = False
        self._resolve_lock = threading.Lock()
        self._probe_lock = threading.Lock()
        self._functions: Optional[FrozenSet[str]] = None
        self._classes: Optional[FrozenSet[str]] = None
        self._lint_lock = threading.Lock()
        self._lint_cache: Dict[str, Optional[str]] = {}

    @classmethod
    def disabled(cls) -> "PhpRuntime":
        return cls(binary=None)

    @property
    def executable(self) -> Optional[str]:
        with self._resolve_lock:
            if not self._resolved_checked:
                if self.binary:
                    self._resolved = shutil.which(self.binary)
                    if self._resolved is None:
                        logger.info("PHP binary %r not found; lint and runtime probing disabled", self.binary)
                self._resolved_checked = True
        return self._resolved

    @property
    def available(self) -> bool:
        return self.executable is not None

    def _run(self, args) -> Optional[str]:
        exe = self.executable
        if exe is None:
            return None
        try:
            proc = subprocess.run(
                [exe, *args],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("PHP invocation %s failed: %s", args, exc)
            return None
        return (proc.stdout or "") + (proc.stderr or "")

    def lint(self, path: Path) -> Optional[str]:
        """Combined output of ``php -l path`` or ``None`` when lint could not run.

        Results are cached per path; one file is linted once per scan however many
        version combinations are checked.
        """
        key = str(Path(path).resolve())
        with self._lint_lock:
            if key in self._lint_cache:
                return self._lint_cache[key]
        output = self._run(["-l", str(path)])
        with self._lint_lock:
            self._lint_cache[key] = output
        return output

    def _probe(self) -> None:
        with self._probe_lock:
            if self._functions is not None:
                return
            functions: FrozenSet[str] = frozenset()
            classes: FrozenSet[str] = frozenset()
            output = self._run(["-r", _PROBE_SCRIPT])
            if output:
                try:
                    data = json.loads(output.strip().splitlines()[-1])
                    functions = frozenset(str(f).lower() for f in data.get("functions", []))
                    classes = frozenset(str(c).lower() for c in data.get("classes", []))
                except (ValueError, IndexError, AttributeError) as exc:
                    logger.debug("Could not parse PHP runtime probe output: %s", exc)
            self._classes = classes
            self._functions = functions

    @property
    def internal_functions(self) -> FrozenSet[str]:
        """Lower-cased internal function names reported by the host PHP."""
        self._probe()
        return self._functions or frozenset()

    @property
    def declared_classes(self) -> FrozenSet[str]:
        """Lower-cased classes, interfaces and traits already loaded in the host PHP."""
        self._probe()
        return self._classes or frozenset()
