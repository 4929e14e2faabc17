from __future__ import annotations
from pathlib import Path
from typing import List, Optional

from .templates import (
    AJAX_CONTEXT,
    METHOD_CALL_RE,
    TemplateContextDetector,
    classify_method,
    widget_suggestion,
)
from ..core.models import ERROR, TEMPLATE_METHOD_CONTEXT_ERROR, WARNING, Finding


class TemplateMethodContextDetector(TemplateContextDetector):
    """Widget methods called through ``$this`` from template partials."""
    NAME = "template_method"
    TITLE = "Template Method Context Detector"
    ORDER = 60
    KIND = TEMPLATE_METHOD_CONTEXT_ERROR

    def line_findings(self, path: Path, line_no: int, code: str, raw: str) -> List[Optional[Finding]]:
        findings: List[Optional[Finding]] = []
        seen = set()
        for m in METHOD_CALL_RE.finditer(code):
            method = m.group(1)
            if method in seen:
                continue
            seen.add(method)
            classified = classify_method(method)
            if classified is None:
                continue
            severity, issue_type = classified
            extra = {}
            if issue_type == AJAX_CONTEXT:
                message = (f"EA Pro Post_List widget method '$this->{method}()' called in template may cause "
                           f"fatal error during AJAX load more operations")
                extra["widget_type"] = "Post_List"
            elif severity == WARNING:
                message = (f"Widget method '$this->{method}()' called in template may cause fatal error when "
                           f"template is included in different contexts")
            else:
                message = f"Method '$this->{method}()' in template follows a pattern that may cause context errors"
            if severity in (ERROR, WARNING):
                suggestion = widget_suggestion(method)
            else:
                suggestion = ("Verify that this method is available in all contexts where this template might be "
                              "included, especially during AJAX operations")
            findings.append(
                self.emit(path, line_no, method, message, severity, suggestion,
                          method=method, issue_type=issue_type, **extra)
            )
        return findings
