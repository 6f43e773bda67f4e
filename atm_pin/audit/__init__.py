"""Audit logging package."""

from atm_pin.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
