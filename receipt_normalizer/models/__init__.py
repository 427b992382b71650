"""
Data Models Package

This package contains all Pydantic models used in the Receipt Normalizer.
All data flowing through the system must conform to these schemas.
"""

from receipt_normalizer.models.image import ImageFile
from receipt_normalizer.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Image models
    "ImageFile",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
