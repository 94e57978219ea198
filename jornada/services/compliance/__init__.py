"""Arbeitszeit-Compliance (Spanien) für die Stempeluhr."""

from .types import (
    ComplianceCheckResult,
    ComplianceCode,
    ComplianceViolation,
    ComplianceWarning,
    Severity,
    TenantLimits,
    TimeInterval,
)
from .intervals import longest_gap_minutes, worked_minutes
from .sink import ComplianceSink, LoggingSink, NullSink
from .service import ComplianceService

__all__ = [
    "ComplianceCheckResult",
    "ComplianceCode",
    "ComplianceViolation",
    "ComplianceWarning",
    "Severity",
    "TenantLimits",
    "TimeInterval",
    "longest_gap_minutes",
    "worked_minutes",
    "ComplianceSink",
    "LoggingSink",
    "NullSink",
    "ComplianceService",
]
