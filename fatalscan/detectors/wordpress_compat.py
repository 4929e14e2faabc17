from __future__ import annotations
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .base import Detector, DetectorServices
from ..core.linestate import LineScanState
from ..core.models import (
    DEPRECATED_FUNCTION,
    DEPRECATED_HOOK,
    ERROR,
    REMOVED_FUNCTION,
    VERSION_REQUIREMENT,
    WARNING,
    Finding,
)
from ..core.utils import find_outside_strings, normalize_version, strip_comments, version_ge, version_lt

# name -> (deprecated since, replacement)
DEPRECATED_FUNCTIONS: Dict[str, Tuple[str, Optional[str]]] = {
    "get_bloginfo_rss": ("2.2.0", "get_bloginfo"),
    "wp_get_links": ("2.1.0", "get_bookmarks"),
    "get_links": ("2.1.0", "get_bookmarks"),
    "get_links_list": ("2.1.0", "wp_list_bookmarks"),
    "links_popup_script": ("2.1.0", None),
    "get_linkobjectsbyname": ("2.1.0", "get_bookmark_by_name"),
    "get_linkobjects": ("2.1.0", "get_bookmarks"),
    "get_linksbyname": ("2.1.0", "get_bookmarks"),
    "wp_get_linksbyname": ("2.1.0", "get_bookmarks"),
    "get_autotoggle": ("2.1.0", None),
    "list_cats": ("2.1.0", "wp_list_categories"),
    "wp_list_cats": ("2.1.0", "wp_list_categories"),
    "dropdown_cats": ("2.1.0", "wp_dropdown_categories"),
    "list_authors": ("2.1.0", "wp_list_authors"),
    "wp_get_post_cats": ("2.1.0", "wp_get_post_categories"),
    "wp_set_post_cats": ("2.1.0", "wp_set_post_categories"),
    "get_archives": ("2.1.0", "wp_get_archives"),
    "get_author_link": ("2.1.0", "get_author_posts_url"),
    "link_pages": ("2.1.0", "wp_link_pages"),
    "get_settings": ("2.1.0", "get_option"),
    "permalink_link": ("1.2.0", "the_permalink"),
    "permalink_single_rss": ("2.3.0", "the_permalink_rss"),
    "get_link": ("2.1.0", "get_bookmark"),
    "edit_link": ("2.1.0", "get_edit_bookmark_link"),
    "get_linkrating": ("2.1.0", None),
    "get_linkcatname": ("2.1.0", "get_category"),
    "wp_specialchars": ("2.8.0", "esc_html"),
    "attribute_escape": ("2.8.0", "esc_attr"),
    "js_escape": ("2.8.0", "esc_js"),
    "clean_url": ("3.0.0", "esc_url"),
    "is_taxonomy": ("3.0.0", "taxonomy_exists"),
    "is_term": ("3.0.0", "term_exists"),
}

# name -> (removed in, replacement)
REMOVED_FUNCTIONS: Dict[str, Tuple[str, Optional[str]]] = {
    "get_profile": ("2.5.0", "get_the_author_meta"),
    "get_usernumposts": ("3.0.0", "count_user_posts"),
    "funky_javascript_callback": ("3.0.0", None),
    "funky_javascript_fix": ("3.0.0", None),
    "is_taxonomy": ("3.0.0", "taxonomy_exists"),
    "is_term": ("3.0.0", "term_exists"),
    "clean_url": ("3.0.0", "esc_url"),
    "js_escape": ("3.0.0", "esc_js"),
    "wp_specialchars": ("2.8.0", "esc_html"),
    "attribute_escape": ("2.8.0", "esc_attr"),
}

# name -> minimum WordPress version
VERSION_REQUIREMENTS: Dict[str, str] = {
    "wp_enqueue_block_editor_assets": "5.0.0",
    "wp_set_script_translations": "5.0.0",
    "wp_get_environment_type": "5.5.0",
    "wp_is_application_passwords_available": "5.6.0",
    "wp_theme_has_theme_json": "5.8.0",
    "wp_get_duotone_filter_id": "5.9.0",
    "wp_get_global_settings": "5.9.0",
    "wp_get_global_styles": "5.9.0",
    "wp_get_theme_data_custom_templates": "5.9.0",
    "wp_get_theme_data_template_parts": "5.9.0",
    "block_core_navigation_render_submenu_icon": "5.9.0",
    "wp_interactivity_config": "6.5.0",
    "wp_interactivity_state": "6.5.0",
    "wp_interactivity_data_wp_context": "6.5.0",
}


def _call_pattern(name: str) -> re.Pattern:
    return re.compile(r"\b" + re.escape(name) + r"\s*\(")


class WordPressCompatibilityDetector(Detector):
    """Deprecated, removed and too-new WordPress functions for the target WordPress version.

    Hook deprecations live in their own table, empty unless one is passed in,
    and only match hook name literals handed to the hook API.
    """
    NAME = "wordpress_compat"
    TITLE = "WordPress Compatibility Detector"
    ORDER = 40

    # Settings
    HOOK_CALL_RE = re.compile(
        r"\b(?:add_action|add_filter|do_action|apply_filters|has_action|has_filter)\s*\(\s*[\"']([^\"']+)[\"']"
    )

    def __init__(
        self,
        services: Optional[DetectorServices] = None,
        deprecated_hooks: Optional[Dict[str, Tuple[str, Optional[str]]]] = None,
    ) -> None:
        super().__init__(services)
        self.deprecated_hooks: Dict[str, Tuple[str, Optional[str]]] = dict(deprecated_hooks or {})
        self._patterns = {
            name: _call_pattern(name)
            for name in set(DEPRECATED_FUNCTIONS) | set(REMOVED_FUNCTIONS) | set(VERSION_REQUIREMENTS)
        }

    def detect_lines(self, path: Path, lines: List[str], php_version: str, wp_version: str) -> List[Finding]:
        state = LineScanState()
        findings: List[Finding] = []
        for idx, raw in enumerate(lines):
            code = state.feed(raw)
            if code is None:
                continue
            code = strip_comments(code)
            if not code.strip():
                continue
            line_no = idx + 1
            findings.extend(self._check_functions(path, line_no, code, wp_version))
            if self.deprecated_hooks:
                findings.extend(self._check_hooks(path, line_no, code, wp_version))
        return findings

    def _calls(self, name: str, code: str) -> bool:
        """True when ``code`` calls the global function ``name``."""
        for m in self._patterns[name].finditer(code):
            start = m.start()
            if find_outside_strings(code[:start], "->") != -1 or find_outside_strings(code[:start], "::") != -1:
                continue
            before = code[:start].rstrip()
            if before.endswith(("$", "\\")) or re.search(r"\bfunction\s*&?\s*$", before):
                continue
            if find_outside_strings(code, m.group(0), start) != start:
                # inside a string literal
                continue
            return True
        return False

    def _check_functions(self, path: Path, line_no: int, code: str, wp_version: str) -> List[Finding]:
        findings: List[Finding] = []
        for name in sorted(self._patterns):
            if name not in code or not self._calls(name, code):
                continue
            removed = REMOVED_FUNCTIONS.get(name)
            removal_applies = removed is not None and version_ge(wp_version, removed[0])
            if removal_applies:
                version, replacement = removed
                findings.append(
                    self.finding(
                        REMOVED_FUNCTION,
                        f"Function '{name}' was removed in WordPress {version}",
                        path,
                        line_no,
                        ERROR,
                        f"Use '{replacement}' instead" if replacement else "Find an alternative implementation",
                        function=name,
                        removed_version=version,
                        replacement=replacement,
                        wp_version=wp_version,
                    )
                )
            deprecated = DEPRECATED_FUNCTIONS.get(name)
            if deprecated is not None and not removal_applies and version_ge(wp_version, deprecated[0]):
                version, replacement = deprecated
                findings.append(
                    self.finding(
                        DEPRECATED_FUNCTION,
                        f"Function '{name}' is deprecated since WordPress {version}",
                        path,
                        line_no,
                        WARNING,
                        f"Use '{replacement}' instead" if replacement else "Find an alternative implementation",
                        function=name,
                        deprecated_version=version,
                        replacement=replacement,
                        wp_version=wp_version,
                    )
                )
            required = VERSION_REQUIREMENTS.get(name)
            if required is not None and version_lt(wp_version, required):
                findings.append(
                    self.finding(
                        VERSION_REQUIREMENT,
                        f"Function '{name}' requires WordPress {required} or higher",
                        path,
                        line_no,
                        ERROR,
                        f"Upgrade WordPress to version {required} or higher, or use an alternative",
                        function=name,
                        required_version=required,
                        current_version=normalize_version(wp_version),
                    )
                )
        return findings

    def _check_hooks(self, path: Path, line_no: int, code: str, wp_version: str) -> List[Finding]:
        findings: List[Finding] = []
        for m in self.HOOK_CALL_RE.finditer(code):
            hook = m.group(1)
            entry = self.deprecated_hooks.get(hook)
            if entry is None or not version_ge(wp_version, entry[0]):
                continue
            version, replacement = entry
            findings.append(
                self.finding(
                    DEPRECATED_HOOK,
                    f"Hook '{hook}' is deprecated since WordPress {version}",
                    path,
                    line_no,
                    WARNING,
                    f"Use '{replacement}' instead" if replacement else "Find an alternative hook",
                    hook=hook,
                    deprecated_version=version,
                    replacement=replacement,
                )
            )
        return findings
