"""CI gate: directory scans, violations and report rendering."""

from __future__ import annotations

from dsgate.ci.engine import CIReportEngine, CIResult, ScanStats, Violation
from dsgate.ci.render import REPORT_FORMATS, render_report


__all__ = [
	"CIReportEngine",
	"CIResult",
	"REPORT_FORMATS",
	"ScanStats",
	"Violation",
	"render_report",
]
