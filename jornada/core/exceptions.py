"""
Fehlerklassen der Compliance-Engine.

Alle Fehler sind für den aktuellen Aufruf fatal. Der Aufrufer entscheidet,
wie er reagiert. Bei Datenfehlern wird nie eingestempelt.
"""
import uuid


class ComplianceError(Exception):
    """Basisklasse aller Engine-Fehler."""


class InvalidTimezone(ComplianceError):
    def __init__(self, timezone: str):
        self.timezone = timezone
        super().__init__(f"Invalid timezone: {timezone!r}. Must be a valid IANA timezone.")


class TenantNotFound(ComplianceError):
    def __init__(self, tenant_id: uuid.UUID | str):
        self.tenant_id = tenant_id
        super().__init__(f"Tenant not found: {tenant_id}")


class DataUnavailable(ComplianceError):
    """Abfrage an den Datenspeicher fehlgeschlagen oder zu langsam."""
