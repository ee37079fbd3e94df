"""Core result data structures for the checker."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Sequence, Tuple

from .severity import Severity
from .tree import Range

SEVERITY_ORDER: Sequence[Severity] = (
    Severity.INTERNAL,
    Severity.FATAL,
    Severity.ERROR,
    Severity.WARNING,
    Severity.CONVENTION,
    Severity.REFACTOR,
    Severity.INFO,
)


@dataclass(frozen=True)
class Finding:
    """A single issue reported by a rule."""

    rule: str
    message: str
    severity: Severity
    location: Optional[Range] = None
    path: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "rule": self.rule,
            "message": self.message,
            "severity": self.severity.value,
            "path": self.path,
            "location": self.location.to_dict() if self.location else None,
        }

    def __str__(self) -> str:
        where = self.path or "<tree>"
        if self.location is not None:
            where = f"{where}:{self.location}"
        return f"{where}: {self.severity.value}: {self.rule}: {self.message}"


@dataclass
class Summary:
    """Aggregate finding counts by severity."""

    internal: int = 0
    fatal: int = 0
    error: int = 0
    warning: int = 0
    convention: int = 0
    refactor: int = 0
    info: int = 0

    def increment(self, severity: Severity) -> None:
        attr = severity.value.lower()
        setattr(self, attr, getattr(self, attr) + 1)

    def merge(self, other: "Summary") -> None:
        for severity in SEVERITY_ORDER:
            attr = severity.value.lower()
            setattr(self, attr, getattr(self, attr) + getattr(other, attr))

    def count(self, severity: Severity) -> int:
        return getattr(self, severity.value.lower())

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def as_rows(self) -> List[Tuple[str, int]]:
        """Return severity/count pairs ordered for reporting."""

        return [(severity.value, self.count(severity)) for severity in SEVERITY_ORDER]

    def at_or_above(self, level: Severity) -> int:
        return sum(
            self.count(severity)
            for severity in SEVERITY_ORDER
            if severity.exit_priority >= level.exit_priority
        )

    @property
    def total(self) -> int:
        return sum(self.count(severity) for severity in SEVERITY_ORDER)


@dataclass
class Report:
    """Ordered findings for one analyzed tree.

    Findings keep the order the runner produced them in: traversal order
    first, then rule registration order within a node.
    """

    path: Optional[str] = None
    summary: Summary = field(default_factory=Summary)
    findings: List[Finding] = field(default_factory=list)

    def add_finding(self, finding: Finding) -> None:
        self.summary.increment(finding.severity)
        self.findings.append(finding)

    @property
    def internal_errors(self) -> List[Finding]:
        return [finding for finding in self.findings if finding.severity is Severity.INTERNAL]

    def passed(self, fail_level: Severity = Severity.CONVENTION) -> bool:
        return self.summary.at_or_above(fail_level) == 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "path": self.path,
            "summary": self.summary.to_dict(),
            "findings": [finding.to_dict() for finding in self.findings],
        }


@dataclass
class ScanResult:
    """Bundle the reports produced for several trees."""

    reports: List[Report] = field(default_factory=list)
    fail_level: Severity = Severity.CONVENTION

    def add_report(self, report: Report) -> None:
        self.reports.append(report)

    @property
    def summary(self) -> Summary:
        summary = Summary()
        for report in self.reports:
            summary.merge(report.summary)
        return summary

    @property
    def findings(self) -> List[Finding]:
        return [finding for report in self.reports for finding in report.findings]

    @property
    def passed(self) -> bool:
        return all(report.passed(self.fail_level) for report in self.reports)

    def to_dict(self) -> Dict[str, object]:
        return {
            "summary": self.summary.to_dict(),
            "files": [report.to_dict() for report in self.reports],
            "passed": self.passed,
            "fail_level": self.fail_level.value,
        }

    def exit_code(self) -> int:
        if self.summary.internal > 0:
            return 2
        if not self.passed:
            return 1
        return 0

    def top_findings(self, limit: int = 5) -> List[Finding]:
        """Return findings ordered by severity ranking."""

        severity_rank = {severity: idx for idx, severity in enumerate(SEVERITY_ORDER)}
        ordered = sorted(
            self.findings,
            key=lambda finding: (severity_rank[finding.severity], finding.path or "", finding.rule),
        )
        return ordered[:limit]


def format_summary_table(result: ScanResult, max_findings: int = 5) -> str:
    """Create a human-readable summary table for console output."""

    lines: List[str] = []
    lines.append("Inspection Summary")
    lines.append("=" * 40)
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity, count in result.summary.as_rows():
        lines.append(f"{severity:<10} | {count:>5}")
    lines.append("-" * len(header))
    status = "PASS" if result.passed else "FAIL"
    lines.append(f"Status    : {status}")
    lines.append(f"Files     : {len(result.reports)}")
    lines.append(f"Findings  : {result.summary.total}")

    findings = result.top_findings(max_findings)
    if findings:
        lines.append("")
        lines.append("Top Findings")
        lines.append("-" * 40)
        for finding in findings:
            lines.append(str(finding))
    return "\n".join(lines)
