from __future__ import annotations
import copy
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from ..core.config import deep_merge, load_json_config
from .defaults import DEFAULT_WIDGET_EXCLUSIONS

logger = logging.getLogger(__name__)

FATAL_ONLY = "fatal_only"
ALL_ERRORS = "all_errors"
DEBUG_MODE = "debug_mode"

REPORTING_MODES: Dict[str, str] = {
    FATAL_ONLY: "Show only fatal errors (exclude known false positives)",
    ALL_ERRORS: "Show all errors including excluded items for debugging",
    DEBUG_MODE: "Show all errors with exclusion status annotations",
}

EXCLUDING_STATUSES = ("exclude", "temporary_exclude")


@dataclass(frozen=True)
class ExclusionDecision:
    exclude: bool = False
    reason: str = ""
    status: str = "unknown"
    future_proof: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class WidgetExclusionManager:
    """Suppression rules for ``$this`` usage in known widget templates.

    Rules are keyed by ecosystem and widget type. A rule with status ``include``
    never suppresses; ``exclude`` and ``temporary_exclude`` suppress when both the
    method and the finding kind are covered (``*`` covers everything).
    """

    def __init__(self, config_file: Optional[Path] = None, config: Optional[Dict[str, Any]] = None) -> None:
        self.config_file = Path(config_file) if config_file else None
        self._exclusions: Dict[str, Dict[str, Dict[str, Any]]] = copy.deepcopy(DEFAULT_WIDGET_EXCLUSIONS)
        self._temporary: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._mode = FATAL_ONLY
        overlay = dict(config or {})
        if self.config_file is not None:
            overlay = deep_merge(load_json_config(self.config_file), overlay)
        self._apply_config(overlay)

    def _apply_config(self, config: Dict[str, Any]) -> None:
        rules = config.get("widget_exclusions")
        if isinstance(rules, dict):
            lowered = {str(eco).lower(): widgets for eco, widgets in rules.items() if isinstance(widgets, dict)}
            self._exclusions = deep_merge(self._exclusions, lowered)
        elif rules is not None:
            logger.warning("Ignoring 'widget_exclusions': expected an object")
        if "reporting_mode" in config:
            self.set_reporting_mode(str(config["reporting_mode"]))

    # Reporting mode
    @property
    def reporting_mode(self) -> str:
        return self._mode

    def set_reporting_mode(self, mode: str) -> None:
        if mode in REPORTING_MODES:
            self._mode = mode
        else:
            logger.warning("Unknown reporting mode %r; keeping %s", mode, self._mode)

    @staticmethod
    def available_reporting_modes() -> Dict[str, str]:
        return dict(REPORTING_MODES)

    # Rules
    def _rule(self, ecosystem: str, widget_type: str) -> Optional[Dict[str, Any]]:
        eco = ecosystem.lower()
        if widget_type in self._temporary.get(eco, {}):
            return self._temporary[eco][widget_type]
        return self._exclusions.get(eco, {}).get(widget_type)

    def should_exclude_error(self, ecosystem: str, widget_type: str, method: str, error_kind: str) -> ExclusionDecision:
        rule = self._rule(ecosystem, widget_type)
        if rule is None:
            return ExclusionDecision()
        status = str(rule.get("status", "unknown"))
        reason = str(rule.get("reason", ""))
        future_proof = bool(rule.get("future_proof", False))
        if status not in EXCLUDING_STATUSES:
            return ExclusionDecision(False, reason, status, future_proof)
        kinds = rule.get("error_types", [])
        methods = rule.get("methods", [])
        covered = (error_kind in kinds or "*" in kinds) and (method in methods or "*" in methods)
        return ExclusionDecision(covered, reason, status, future_proof)

    def should_show_error(self, decision: ExclusionDecision) -> bool:
        if self._mode in (ALL_ERRORS, DEBUG_MODE):
            return True
        return not decision.exclude

    def add_temporary_exclusion(self, ecosystem: str, widget_type: str, rule: Dict[str, Any]) -> "WidgetExclusionManager":
        entry = {
            "status": "temporary_exclude",
            "methods": [],
            "error_types": [],
            "reason": "Temporary exclusion",
            "future_proof": True,
        }
        entry.update(rule)
        self._temporary.setdefault(ecosystem.lower(), {})[widget_type] = entry
        return self

    def widget_exclusions(self, ecosystem: str) -> Dict[str, Dict[str, Any]]:
        return copy.deepcopy(self._exclusions.get(ecosystem.lower(), {}))

    def exclusion_stats(self) -> Dict[str, int]:
        stats = {
            "total_ecosystems": len(self._exclusions),
            "total_widgets": 0,
            "excluded_widgets": 0,
            "temporary_exclusions": 0,
            "future_proof_widgets": 0,
        }
        for widgets in self._exclusions.values():
            stats["total_widgets"] += len(widgets)
            for rule in widgets.values():
                status = rule.get("status")
                if status in EXCLUDING_STATUSES:
                    stats["excluded_widgets"] += 1
                if status == "temporary_exclude":
                    stats["temporary_exclusions"] += 1
                if rule.get("future_proof"):
                    stats["future_proof_widgets"] += 1
        return stats

    def save_configuration(self, path: Optional[Path] = None) -> bool:
        target = Path(path) if path else self.config_file
        if target is None:
            return False
        payload = {
            "widget_exclusions": self._exclusions,
            "reporting_mode": self._mode,
            "last_updated": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        }
        try:
            target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not save exclusion configuration to %s: %s", target, exc)
            return False
        return True
