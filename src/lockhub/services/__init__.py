"""Auxiliary services used around the lock core."""

from .audit_logger import AuditLogger, LockDecision

__all__ = ["AuditLogger", "LockDecision"]
