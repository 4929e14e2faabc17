from __future__ import annotations
import re
from pathlib import Path
from typing import List, Set

from .base import Detector, EcosystemAware
from ..analysis.registry import scan_declarations
from ..core.linestate import LineScanState, is_javascript_line
from ..core.models import ERROR, PHP_VERSION_REQUIREMENT, UNDEFINED_FUNCTION, Finding
from ..core.utils import clean_code, normalize_version, version_lt
from ..tables.php import BUILTIN_FUNCTIONS, VERSIONED_FUNCTIONS
from ..tables.wordpress import WORDPRESS_ADMIN_FUNCTIONS, WORDPRESS_FUNCTION_PREFIXES, WORDPRESS_FUNCTIONS


class UndefinedFunctionDetector(EcosystemAware, Detector):
    """Flags bare calls to functions that neither PHP, WordPress, the detected
    ecosystems nor the plugin itself define."""
    NAME = "undefined_function"
    TITLE = "Undefined Function Detector"
    ORDER = 20

    # Settings
    CALL_RE = re.compile(r"(?<![.$\\\w])([A-Za-z_]\w*)\s*\(")
    # A call token directly preceded by one of these is a declaration or an instantiation.
    NON_CALL_PREFIX_RE = re.compile(
        r"(?:\bnew|\bfunction\s*&?|\bfn|\bcatch\s*\(|\binstanceof|\bextends|\bimplements|\bconst|\bclass|\benum|\bcase)"
        r"\s*[\w\\]*$",
        re.IGNORECASE,
    )
    DECLARATION_LINE_RE = re.compile(r"^\s*(?:class|interface|trait|namespace|use)\s+")
    CSS_LINE_RES = [
        re.compile(r"\{\s*[\w-]+\s*:\s*[^{}()]*;?\s*\}"),
        re.compile(r":\s*(?:calc|rgba|rgb|hsl|hsla|linear-gradient|radial-gradient|url|var)\s*\("),
        re.compile(r"[\"'][^\"']*\.(?:css|scss|sass|less)\b[^\"']*[\"']"),
        re.compile(r"\bstyle\s*=\s*[\\]?[\"']"),
    ]
    KEYWORDS = frozenset("""
        if else elseif while for foreach switch case default try catch finally class function
        interface trait namespace use echo print return throw include require include_once
        require_once isset empty unset array list exit die new clone instanceof fn match static
        self parent declare eval and or xor yield global goto insteadof abstract final
    """.split())

    def detect_lines(self, path: Path, lines: List[str], php_version: str, wp_version: str) -> List[Finding]:
        _types, declared_here = scan_declarations(lines)
        state = LineScanState()
        findings: List[Finding] = []
        for idx, raw in enumerate(lines):
            code = state.feed(raw)
            if code is None or state.in_script or is_javascript_line(raw):
                continue
            if any(rx.search(raw) for rx in self.CSS_LINE_RES):
                continue
            code = clean_code(code)
            if "->" in code or "::" in code or self.DECLARATION_LINE_RE.match(code):
                continue
            for name in self._calls(code):
                finding = self._classify(path, lines, idx + 1, name, declared_here, php_version, wp_version)
                if finding is not None:
                    findings.append(finding)
        return findings

    def _calls(self, code: str) -> List[str]:
        names: List[str] = []
        seen: Set[str] = set()
        for m in self.CALL_RE.finditer(code):
            name = m.group(1)
            lowered = name.lower()
            if lowered in self.KEYWORDS or lowered.startswith("__") or lowered in seen:
                continue
            if self.NON_CALL_PREFIX_RE.search(code[:m.start()]):
                continue
            seen.add(lowered)
            names.append(name)
        return names

    def _classify(self, path: Path, lines: List[str], line_no: int, name: str, declared_here: Set[str],
                  php_version: str, wp_version: str):
        lowered = name.lower()
        if lowered in declared_here or self.services.registry.has_function(lowered):
            return None

        if lowered in WORDPRESS_ADMIN_FUNCTIONS:
            analyzer = self.services.context
            where = analyzer.classify(path, line_no, name, lines)
            return self.finding(
                UNDEFINED_FUNCTION,
                f"Call to undefined function '{name}'",
                path,
                line_no,
                analyzer.severity_for(where),
                analyzer.suggestion_for(where, name),
                function=name,
                php_version=php_version,
                wp_version=wp_version,
                wp_context=where,
            )

        required = VERSIONED_FUNCTIONS.get(lowered)
        if required is not None:
            if not version_lt(php_version, required):
                return None
            return self.finding(
                PHP_VERSION_REQUIREMENT,
                f"Function '{name}' requires PHP {required} or higher",
                path,
                line_no,
                ERROR,
                f"Upgrade PHP to version {required} or higher, or guard the call with function_exists()",
                function=name,
                required_version=required,
                current_version=normalize_version(php_version),
            )

        if self._is_known(name):
            return None
        return self.finding(
            UNDEFINED_FUNCTION,
            f"Call to undefined function '{name}'",
            path,
            line_no,
            ERROR,
            f"Check if function '{name}' is defined or include the required file/library",
            function=name,
            php_version=php_version,
            wp_version=wp_version,
        )

    def _is_known(self, name: str) -> bool:
        lowered = name.lower()
        if lowered in BUILTIN_FUNCTIONS or lowered in self.services.runtime.internal_functions:
            return True
        if name in WORDPRESS_FUNCTIONS or lowered in WORDPRESS_FUNCTIONS:
            return True
        if lowered.startswith(WORDPRESS_FUNCTION_PREFIXES):
            return True
        return self.services.exceptions.is_function_excepted(name, self.ecosystems)
