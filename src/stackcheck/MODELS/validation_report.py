"""
Models for validation results.
"""
from typing import List
from pydantic import BaseModel
from enum import Enum

class Severity(str, Enum):
    """
    How serious a validation issue is.
    """
    ERROR = "error"
    WARNING = "warning"

class Issue(BaseModel):
    """
    A single problem found in a compose file.

    ``path`` is a dotted location such as ``services.rust.links[0]``.
    """
    severity: Severity
    code: str
    message: str
    path: str = ""

class ValidationReport(BaseModel):
    """
    The collected issues of one validation run.
    """
    issues: List[Issue] = []

    def add(self, severity: Severity, code: str, message: str, path: str = "") -> Issue:
        issue = Issue(severity=severity, code=code, message=message, path=path)
        self.issues.append(issue)
        return issue

    def error(self, code: str, message: str, path: str = "") -> Issue:
        return self.add(Severity.ERROR, code, message, path)

    def warning(self, code: str, message: str, path: str = "") -> Issue:
        return self.add(Severity.WARNING, code, message, path)

    def extend(self, other: "ValidationReport"):
        self.issues.extend(other.issues)

    @property
    def errors(self) -> List[Issue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[Issue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def ok(self) -> bool:
        """True when no errors were found. Warnings do not count."""
        return not self.errors

    def codes(self) -> List[str]:
        return [i.code for i in self.issues]
