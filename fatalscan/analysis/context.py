from __future__ import annotations
import re
from pathlib import Path
from typing import List, Optional, Sequence

from ..core.models import ERROR, WARNING
from ..core.utils import read_lines

ADMIN = "admin"
FRONTEND = "frontend"
CONDITIONAL = "conditional"
AMBIGUOUS = "ambiguous"

ADMIN_HOOKS = [
    "admin_init", "admin_menu", "admin_head", "admin_footer", "admin_enqueue_scripts",
    "admin_notices", "admin_bar_menu", "admin_post_", "wp_ajax_", "wp_ajax_nopriv_",
    "load-", "admin_action_", "wp_dashboard_setup", "admin_page_", "edit_form_",
    "save_post", "delete_post", "wp_insert_post", "pre_get_posts",
    "manage_posts_columns", "manage_pages_columns", "manage_users_columns",
    "bulk_actions-", "handle_bulk_actions-", "admin_print_styles", "admin_print_scripts",
    # Elementor editor hooks run inside the dashboard
    "elementor/editor/footer", "elementor/editor/before_enqueue_scripts",
    "elementor/editor/after_enqueue_scripts", "elementor/editor/wp_head",
    "elementor/editor/before_enqueue_styles", "elementor/editor/after_enqueue_styles",
    "elementor/preview/enqueue_styles", "elementor/frontend/after_enqueue_styles",
]

FRONTEND_HOOKS = [
    "wp_head", "wp_footer", "wp_enqueue_scripts", "template_redirect", "init", "wp_loaded",
    "parse_request", "send_headers", "wp", "template_include", "get_header", "get_footer",
    "get_sidebar", "wp_print_styles", "wp_print_scripts", "wp_meta", "rss_head", "atom_head",
    "rdf_head", "rss2_head", "commentsrss2_head",
]

SEVERITY_BY_CONTEXT = {
    ADMIN: WARNING,
    FRONTEND: ERROR,
    CONDITIONAL: WARNING,
    AMBIGUOUS: ERROR,
}

WINDOW_BEFORE = 10
WINDOW_AFTER = 10
EDITOR_WINDOW_BEFORE = 50

IS_ADMIN_GUARD_RE = re.compile(r"if\s*\(\s*is_admin\s*\(\s*\)\s*\)")
NOT_ADMIN_GUARD_RE = re.compile(r"if\s*\(\s*!\s*is_admin\s*\(\s*\)\s*\)")
ADMIN_PATH_RE = re.compile(r"wp-admin/|admin\.php|admin_")
FRONTEND_TOKEN_RE = re.compile(r"template|theme|frontend")
EDITOR_TEXT_RE = re.compile(r"print_template_views|templately_promo|elementor.*editor|editor.*elementor", re.IGNORECASE)
EDITOR_FUNCTION_RE = re.compile(
    r"function\s+(?:print_template_views|templately_promo\w*|\w*editor\w*|\w*setup\w*wizard\w*"
    r"|data_plugins_content|eael_quick_setup_data)\s*\(",
    re.IGNORECASE,
)
FUNCTION_DEF_RE = re.compile(r"\bfunction\s+&?\s*([A-Za-z_]\w*)\s*\(")
TYPE_DEF_RE = re.compile(r"^\s*(?:abstract\s+|final\s+)?(?:class|interface|trait)\s+\w+")
METHOD_EXISTS_RE = re.compile(r"method_exists\s*\(")


def _hook_pattern(hook: str) -> str:
    # Hooks ending in a separator are families ("wp_ajax_foo", "load-edit.php").
    if hook.endswith(("_", "-", "/")):
        return re.escape(hook) + r"[^\"']*"
    return re.escape(hook)


def _registration_re(hooks: Sequence[str]) -> re.Pattern:
    names = "|".join(_hook_pattern(h) for h in hooks)
    return re.compile(r"add_(?:action|filter)\s*\(\s*[\"'](?:" + names + r")[\"']")


ADMIN_REGISTRATION_RE = _registration_re(ADMIN_HOOKS)
FRONTEND_REGISTRATION_RE = _registration_re(FRONTEND_HOOKS)


class WordPressContextAnalyzer:
    """Classifies where a call site runs: dashboard, front end, behind a guard, or unknown."""

    def classify(self, file_path: Path, line_number: int, function_name: str,
                 lines: Optional[List[str]] = None) -> str:
        if lines is None:
            lines = read_lines(file_path)
        if not lines:
            return AMBIGUOUS

        index = line_number - 1
        start = max(0, index - WINDOW_BEFORE)
        end = min(len(lines), index + WINDOW_AFTER + 1)
        window = "\n".join(lines[start:end])

        if self._is_admin(window, lines, index):
            return ADMIN
        if self._is_frontend(window):
            return FRONTEND
        if self._is_conditional(window, function_name):
            return CONDITIONAL
        return AMBIGUOUS

    def severity_for(self, context: str) -> str:
        return SEVERITY_BY_CONTEXT.get(context, ERROR)

    def suggestion_for(self, context: str, function_name: str) -> str:
        if context == ADMIN:
            return (f"Function '{function_name}' is used in admin context. Consider adding explicit admin "
                    "checks or including wp-admin/includes/plugin.php if needed.")
        if context == FRONTEND:
            return (f"Function '{function_name}' should not be used in frontend context. Include "
                    "wp-admin/includes/plugin.php or use admin hooks instead.")
        if context == CONDITIONAL:
            return f"Function '{function_name}' is properly checked with conditional loading. This is good practice."
        return (f"Function '{function_name}' requires wp-admin/includes/plugin.php to be loaded. Add explicit "
                "admin context checks, include the required file, or use function_exists() validation.")

    # Admin signals
    def _is_admin(self, window: str, lines: List[str], index: int) -> bool:
        if ADMIN_REGISTRATION_RE.search(window):
            return True
        if IS_ADMIN_GUARD_RE.search(window):
            return True
        if ADMIN_PATH_RE.search(window):
            return True
        if self._inside_admin_callback(lines, index):
            return True
        return self._in_editor_context(window, lines, index)

    def _inside_admin_callback(self, lines: List[str], index: int) -> bool:
        name = None
        for i in range(index, -1, -1):
            m = FUNCTION_DEF_RE.search(lines[i])
            if m:
                name = m.group(1)
                break
            if TYPE_DEF_RE.match(lines[i]):
                return False
        if name is None:
            return False

        quoted = r"[\"']" + re.escape(name) + r"[\"']"
        callback = (
            r"(?:" + quoted
            + r"|\[\s*\$this\s*,\s*" + quoted + r"\s*\]"
            + r"|array\s*\(\s*\$this\s*,\s*" + quoted + r"\s*\))"
        )
        hooks = "|".join(_hook_pattern(h) for h in ADMIN_HOOKS)
        registration = re.compile(
            r"add_(?:action|filter)\s*\(\s*[\"'](?:" + hooks + r")[\"']\s*,\s*" + callback
        )
        return any(registration.search(line) for line in lines)

    def _in_editor_context(self, window: str, lines: List[str], index: int) -> bool:
        if EDITOR_TEXT_RE.search(window):
            return True
        start = max(0, index - EDITOR_WINDOW_BEFORE)
        end = min(len(lines), index + WINDOW_AFTER)
        return any(EDITOR_FUNCTION_RE.search(lines[i]) for i in range(start, end))

    # Front-end and guard signals
    @staticmethod
    def _is_frontend(window: str) -> bool:
        if FRONTEND_REGISTRATION_RE.search(window):
            return True
        if NOT_ADMIN_GUARD_RE.search(window):
            return True
        return bool(FRONTEND_TOKEN_RE.search(window))

    @staticmethod
    def _is_conditional(window: str, function_name: str) -> bool:
        name = re.escape(function_name)
        if re.search(r"function_exists\s*\(\s*[\"']" + name + r"[\"']", window):
            return True
        if re.search(r"is_callable\s*\(\s*[\"']" + name + r"[\"']", window):
            return True
        return bool(METHOD_EXISTS_RE.search(window))
