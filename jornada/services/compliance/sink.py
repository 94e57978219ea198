"""
Beobachtbarkeit der Compliance-Prüfungen.

Der ComplianceService meldet jedes Regelergebnis an einen injizierten Sink,
statt selbst global zu loggen.
"""
import logging
import uuid
from typing import Protocol

from jornada.services.compliance.types import ComplianceCheckResult

logger = logging.getLogger(__name__)


class ComplianceSink(Protocol):
    def record(
        self,
        check: str,
        result: ComplianceCheckResult,
        *,
        user_id: uuid.UUID | str | None,
        tenant_id: uuid.UUID | str | None,
    ) -> None:
        ...


class NullSink:
    def record(self, check, result, *, user_id, tenant_id) -> None:
        pass


class LoggingSink:
    """Schreibt Verstöße/Warnungen als WARNING, alles andere als DEBUG."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def record(self, check, result, *, user_id, tenant_id) -> None:
        codes = [v.code.value for v in result.violations] + [w.code.value for w in result.warnings]
        if check == "clock_in" and not result.is_compliant:
            self.log.warning(
                "Clock-in blocked by compliance for user %s in tenant %s: %s",
                user_id, tenant_id, ", ".join(codes),
            )
        elif result.violations:
            self.log.warning(
                "%s violation for user %s in tenant %s: %s", check, user_id, tenant_id, ", ".join(codes)
            )
        elif result.warnings:
            self.log.warning(
                "%s warning for user %s in tenant %s: %s", check, user_id, tenant_id, ", ".join(codes)
            )
        else:
            self.log.debug("%s ok for user %s in tenant %s", check, user_id, tenant_id)
