from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .base import Detector, EcosystemAware
from ..core.linestate import LineScanState
from ..core.models import ERROR, INFO, WARNING, Finding
from ..core.utils import clean_code
from ..ecosystems.defaults import UNKNOWN_WIDGET, WIDGET_PATH_TAGS
from ..ecosystems.widgets import DEBUG_MODE

logger = logging.getLogger(__name__)

TEMPLATE_DIR_TOKENS = ("template", "views", "partials", "widgets", "elementor")
TEMPLATE_FILE_RE = re.compile(
    r"^(?:default|advanced|content|item|post-list|post-grid)\.php$|^(?:preset|layout|style)-\d+\.php$",
    re.IGNORECASE,
)
METHOD_CALL_RE = re.compile(r"\$this\s*->\s*([A-Za-z_]\w*)\s*\(")
COMMENT_LINE_RE = re.compile(r"^\s*(?://|#(?!\[)|/\*|\*)")

# Methods that only exist on the Post_List widget and are known to fatal when its
# templates are re-rendered by the AJAX load more endpoint.
AJAX_FATAL_METHODS: Dict[str, str] = {
    "render_post_meta_dates": (
        "Replace with direct date rendering logic or pass the formatted date as a variable to the "
        "template. This method is only available in the Post_List widget class and will cause fatal "
        "errors during AJAX load more operations."
    ),
    "get_last_modified_date": (
        "Use get_the_modified_date() WordPress function directly or pass the modified date as a "
        "variable to the template. This method is only available in the Post_List widget class."
    ),
}
WIDGET_ACCESSOR_METHODS = frozenset({
    "render_meta", "render_content", "render_title", "render_excerpt", "render_image",
    "render_author", "render_categories", "render_tags", "get_settings", "get_id",
    "print_render_attribute_string", "add_render_attribute", "get_widget_settings",
    "get_widget_id", "render_widget_content", "get_settings_for_display",
})
PROBLEMATIC_PREFIXES = ("render_", "get_", "print_", "display_", "show_", "output_")

AJAX_CONTEXT = "ea_pro_ajax_context"
WIDGET_CONTEXT = "widget_context"
POTENTIAL_CONTEXT = "potential_context"


def classify_method(method: str) -> Optional[Tuple[str, str]]:
    """``(severity, issue_type)`` for a ``$this->method()`` call in a template, or ``None``."""
    if method in AJAX_FATAL_METHODS:
        return ERROR, AJAX_CONTEXT
    if method in WIDGET_ACCESSOR_METHODS:
        return WARNING, WIDGET_CONTEXT
    if method.startswith(PROBLEMATIC_PREFIXES):
        return INFO, POTENTIAL_CONTEXT
    return None


def widget_suggestion(method: str) -> str:
    if method in AJAX_FATAL_METHODS:
        return AJAX_FATAL_METHODS[method]
    if method.startswith("render_"):
        return ("Consider moving the rendering logic outside the template or ensuring the widget object "
                "is properly available in all contexts where this template is used.")
    if method.startswith("get_"):
        return ("Call this method before including the template and pass the result as a variable, or "
                "use equivalent WordPress functions directly.")
    return ("Ensure this method is available in all contexts where this template might be included, or "
            "pass the required data as variables to the template.")


class TemplateContextDetector(EcosystemAware, Detector):
    """
    Shared machinery for detectors that police ``$this`` inside template partials.

    A partial included from a widget method inherits that method's ``$this``.
    Included again from somewhere else, such as an AJAX handler that re-renders
    the partial, ``$this`` is a different object or undefined and every access
    becomes a fatal error.

    Subclasses set ``KIND`` and implement :meth:`line_findings`. Every finding
    passes through :meth:`emit`, which applies the widget exclusion rules for
    the detected ecosystems.
    """
    KIND = ""

    def is_template(self, path: Path) -> bool:
        if TEMPLATE_FILE_RE.match(path.name):
            return True
        if self.plugin_root is not None:
            try:
                dirs = Path(path).resolve().relative_to(self.plugin_root.resolve()).parent.parts
            except ValueError:
                dirs = (path.parent.name,)
        else:
            dirs = (path.parent.name,)
        return any(token in part.lower() for part in dirs for token in TEMPLATE_DIR_TOKENS)

    def widget_type(self, path: Path) -> str:
        haystack = self.relative_path(path) if self.plugin_root is not None else Path(path).as_posix()
        haystack = haystack.lower().replace("_", "-")
        for needle, tag in WIDGET_PATH_TAGS:
            if needle in haystack:
                return tag
        return UNKNOWN_WIDGET

    def detect_lines(self, path: Path, lines: List[str], php_version: str, wp_version: str) -> List[Finding]:
        if not self.is_template(path):
            return []
        state = LineScanState()
        findings: List[Finding] = []
        for idx, raw in enumerate(lines):
            code = state.feed(raw)
            if code is None or COMMENT_LINE_RE.match(raw):
                continue
            code = clean_code(code)
            if "$this" not in code:
                continue
            for finding in self.line_findings(path, idx + 1, code, raw):
                if finding is not None:
                    findings.append(finding)
        return findings

    def line_findings(self, path: Path, line_no: int, code: str, raw: str) -> List[Optional[Finding]]:
        raise NotImplementedError

    def _exclusion(self, path: Path, method: str) -> Tuple[bool, Optional[Dict[str, Any]]]:
        """Whether to report, plus the exclusion annotation debug mode attaches."""
        manager = self.services.widgets
        widget = self.widget_type(path)
        decisions = [
            (eco, manager.should_exclude_error(eco, widget, method, self.KIND)) for eco in sorted(self.ecosystems)
        ]
        if any(decision.status == "include" for _eco, decision in decisions):
            return True, None
        excluding = [(eco, decision) for eco, decision in decisions if decision.exclude]
        if not excluding:
            return True, None
        eco, decision = excluding[0]
        if not manager.should_show_error(decision):
            logger.debug("Suppressed %s for %s in %s (%s): %s", self.KIND, method, path.name, widget, decision.reason)
            return False, None
        if manager.reporting_mode == DEBUG_MODE:
            annotation = decision.to_dict()
            annotation.update(ecosystem=eco, widget_type=widget, method=method)
            return True, annotation
        return True, None

    def emit(self, path: Path, line_no: int, method: str, message: str, severity: str, suggestion: str, /,
             **context: Any) -> Optional[Finding]:
        show, annotation = self._exclusion(path, method)
        if not show:
            return None
        if annotation is not None:
            context["exclusion"] = annotation
        context.setdefault("widget_type", self.widget_type(path))
        context.setdefault("template_file", path.name)
        return self.finding(self.KIND, message, path, line_no, severity, suggestion, **context)
