"""
Schemas für Compliance-Ergebnisse (Ausgabe an Stempel-Handler und Reporting).
"""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ComplianceViolationOut(_CamelModel):
    code: str
    message: str
    severity: str = "BLOCKING"
    details: dict[str, Any] = Field(default_factory=dict)


class ComplianceWarningOut(_CamelModel):
    code: str
    message: str
    threshold: float
    current: float


class ComplianceCheckOut(_CamelModel):
    is_compliant: bool
    violations: list[ComplianceViolationOut] = Field(default_factory=list)
    warnings: list[ComplianceWarningOut] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result) -> "ComplianceCheckOut":
        return cls.model_validate(result.to_dict())
