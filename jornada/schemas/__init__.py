from jornada.schemas.compliance import ComplianceCheckOut, ComplianceViolationOut, ComplianceWarningOut
from jornada.schemas.tenant import TenantComplianceUpdate

__all__ = [
    "ComplianceCheckOut", "ComplianceViolationOut", "ComplianceWarningOut",
    "TenantComplianceUpdate",
]
