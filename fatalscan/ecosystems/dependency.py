from __future__ import annotations
import copy
from typing import Dict, Iterable, List, Optional

from .defaults import ECOSYSTEM_EXCEPTIONS, GLOBAL_EXCEPTIONS

EXCEPTION_KEYS = ("classes", "class_patterns", "functions", "function_patterns")


def pattern_matches(name: str, pattern: str) -> bool:
    """``Foo*`` is a prefix match; anything else matches exactly or as a substring."""
    if pattern.endswith("*"):
        return name.startswith(pattern[:-1])
    return name == pattern or pattern in name


def _wildcard_matches(name: str, entry: str) -> bool:
    if entry.endswith("*"):
        return name.startswith(entry[:-1])
    return name == entry


class DependencyExceptionManager:
    """Decides whether a class or function is supplied by something outside the plugin.

    Global entries apply to every plugin; ecosystem entries only apply when that
    ecosystem was detected.
    """

    def __init__(
        self,
        ecosystem_exceptions: Optional[Dict[str, Dict[str, List[str]]]] = None,
        global_exceptions: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        self._ecosystems: Dict[str, Dict[str, List[str]]] = copy.deepcopy(
            ECOSYSTEM_EXCEPTIONS if ecosystem_exceptions is None else ecosystem_exceptions
        )
        self._global: Dict[str, List[str]] = copy.deepcopy(
            GLOBAL_EXCEPTIONS if global_exceptions is None else global_exceptions
        )

    @staticmethod
    def _normalize(name: str) -> str:
        return name.lstrip("\\")

    def _is_excepted(self, name: str, ecosystems: Iterable[str], exact_key: str, pattern_key: str) -> bool:
        name = self._normalize(name)
        if any(_wildcard_matches(name, e) for e in self._global.get(exact_key, [])):
            return True
        if any(pattern_matches(name, p) for p in self._global.get(pattern_key, [])):
            return True
        for ecosystem in ecosystems:
            table = self._ecosystems.get(ecosystem.lower())
            if not table:
                continue
            if name in table.get(exact_key, []):
                return True
            if any(pattern_matches(name, p) for p in table.get(pattern_key, [])):
                return True
        return False

    def is_class_excepted(self, class_name: str, ecosystems: Iterable[str] = ()) -> bool:
        return self._is_excepted(class_name, ecosystems, "classes", "class_patterns")

    def is_function_excepted(self, function_name: str, ecosystems: Iterable[str] = ()) -> bool:
        return self._is_excepted(function_name, ecosystems, "functions", "function_patterns")

    def class_exception_reason(self, class_name: str, ecosystems: Iterable[str] = ()) -> Optional[str]:
        name = self._normalize(class_name)
        for ecosystem in ecosystems:
            eco = ecosystem.lower()
            if name in self._ecosystems.get(eco, {}).get("classes", []):
                return f"Class '{name}' is provided by {eco} plugin dependency"
        return None

    def add_ecosystem_exceptions(self, ecosystem: str, exceptions: Dict[str, Iterable[str]]) -> "DependencyExceptionManager":
        table = self._ecosystems.setdefault(ecosystem.lower(), {})
        for key, values in exceptions.items():
            bucket = table.setdefault(key, [])
            for value in values:
                if value not in bucket:
                    bucket.append(value)
        return self

    def ecosystem_exceptions(self, ecosystem: str) -> Dict[str, List[str]]:
        return copy.deepcopy(self._ecosystems.get(ecosystem.lower(), {}))

    @property
    def known_ecosystems(self) -> List[str]:
        return sorted(self._ecosystems)
