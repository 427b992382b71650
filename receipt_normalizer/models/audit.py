"""
Audit Models for Receipt Normalizer

Every receipt image that enters the system leaves a trail: it was
uploaded, it was rejected at the door, it was normalized, or normalization
failed. These events make a failed receipt scan traceable back to the
image step.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Upload
    IMAGE_UPLOADED = "image_uploaded"
    IMAGE_UPLOAD_REJECTED = "image_upload_rejected"

    # Normalization
    IMAGE_NORMALIZED = "image_normalized"
    IMAGE_NORMALIZATION_FAILED = "image_normalization_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'image')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one receipt upload)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.image_uploaded(upload_id, filename, size, correlation_id)
        event = AuditEventBuilder.image_normalized(upload_id, ..., correlation_id)
    """

    @staticmethod
    def image_uploaded(
        upload_id: UUID,
        filename: str,
        file_size: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMAGE_UPLOADED,
            entity_type="image",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description=f"Image uploaded: {filename}",
            details={
                "filename": filename,
                "file_size_bytes": file_size,
            },
            is_user_action=True,
        )

    @staticmethod
    def image_upload_rejected(
        upload_id: UUID,
        filename: str,
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMAGE_UPLOAD_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="image",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description=f"Image upload rejected: {filename}",
            details={
                "filename": filename,
                "reason": reason,
            },
            is_user_action=True,
        )

    @staticmethod
    def image_normalized(
        upload_id: UUID,
        original_size: int,
        normalized_size: int,
        mime_type: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMAGE_NORMALIZED,
            entity_type="image",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description="Image normalized for receipt scanning",
            details={
                "original_size_bytes": original_size,
                "normalized_size_bytes": normalized_size,
                "mime_type": mime_type,
            },
        )

    @staticmethod
    def image_normalization_failed(
        upload_id: UUID,
        error_type: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMAGE_NORMALIZATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="image",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description="Image could not be normalized",
            error_code=error_type,
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_code=error_type,
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
