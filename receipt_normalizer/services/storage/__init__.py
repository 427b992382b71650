"""
Storage Services Package

Provides the audit storage interface and an in-memory implementation.
"""

from receipt_normalizer.services.storage.interface import (
    AuditStorageInterface,
)
from receipt_normalizer.services.storage.memory import InMemoryAuditStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    # In-memory implementation
    "InMemoryAuditStorage",
]
