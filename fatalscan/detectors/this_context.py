from __future__ import annotations
import re
from pathlib import Path
from typing import List, Optional

from .templates import METHOD_CALL_RE, TemplateContextDetector, classify_method, widget_suggestion
from ..core.models import ERROR, THIS_CONTEXT_ERROR, Finding


class ThisContextDetector(TemplateContextDetector):
    """
    Any ``$this`` dereference in a template partial.

    Method calls are graded like the template method detector does. Property
    reads are always errors: once the partial runs outside its widget there is
    no object to read them from.
    """
    NAME = "this_context"
    TITLE = "This Context Detector"
    ORDER = 70
    KIND = THIS_CONTEXT_ERROR

    # Settings
    PROPERTY_RE = re.compile(r"\$this\s*->\s*([A-Za-z_]\w*)\b(?!\s*\()")

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
            findings.append(
                self.emit(
                    path,
                    line_no,
                    method,
                    f"Usage of '$this->{method}()' in template file may cause fatal error when included in "
                    f"different contexts",
                    severity,
                    widget_suggestion(method),
                    method=method,
                    issue_type=issue_type,
                )
            )
        for m in self.PROPERTY_RE.finditer(code):
            prop = m.group(1)
            if prop in seen:
                continue
            seen.add(prop)
            findings.append(
                self.emit(
                    path,
                    line_no,
                    prop,
                    f"Usage of '$this->{prop}' in template file may cause fatal error when included in "
                    f"different contexts",
                    ERROR,
                    "Consider passing the property value as a variable to the template or checking if $this is "
                    "available before use",
                    property=prop,
                )
            )
        return findings
