"""
Main Orchestrator for Receipt Normalizer

This module ties together all the components and defines the flow a
receipt photo goes through when it is attached to a new transaction:

    upload -> size check -> normalize -> hand back to the form

DESIGN DECISION: The orchestrator is the only place that turns failures
into user-facing messages. The normalizer raises typed exceptions; the
flow catches them, audits them and tells the user to try another photo.
"""

from typing import Optional
from uuid import UUID, uuid4

from receipt_normalizer.audit import AuditLogger, configure_logging, create_correlation_id
from receipt_normalizer.config import AppSettings, get_settings
from receipt_normalizer.models.image import ImageFile
from receipt_normalizer.services.codec import (
    ImageDecodeError,
    ImageNormalizationError,
    ImageResourceError,
    PillowRasterCodec,
)
from receipt_normalizer.services.image import ImageNormalizer
from receipt_normalizer.services.storage import AuditStorageInterface


class ReceiptUploadFlow:
    """
    Orchestrates the receipt image upload.

    Flow:
    1. Upload -> Reject files over the size limit
    2. Audit -> Record the upload
    3. Normalize -> Scale and re-encode
    4. Return -> Normalized image for the receipt scanner, or a message
    """

    def __init__(
        self,
        normalizer: Optional[ImageNormalizer] = None,
        audit_logger: Optional[AuditLogger] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._normalizer = normalizer or ImageNormalizer()
        self._audit_logger = audit_logger
        self._app_settings = app_settings or get_settings().app

    async def process_receipt(
        self,
        image: ImageFile,
        max_dimension: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[ImageFile], bool, str]:
        """
        Process an uploaded receipt image.

        Returns:
            (normalized_image, can_proceed, message)

        If can_proceed is False, normalized_image is None and the user
        should pick a different file.
        """
        correlation_id = correlation_id or create_correlation_id()
        upload_id = uuid4()

        max_bytes = self._app_settings.max_upload_size_bytes
        if image.size_bytes > max_bytes:
            reason = (
                f"File is {image.size_bytes} bytes, "
                f"limit is {self._app_settings.max_upload_size_mb} MB"
            )
            if self._audit_logger:
                await self._audit_logger.log_image_upload_rejected(
                    upload_id=upload_id,
                    filename=image.name,
                    reason=reason,
                    correlation_id=correlation_id,
                )
            return None, False, (
                f"File size should be less than {self._app_settings.max_upload_size_mb}MB."
            )

        if self._audit_logger:
            await self._audit_logger.log_image_uploaded(
                upload_id=upload_id,
                filename=image.name,
                file_size=image.size_bytes,
                correlation_id=correlation_id,
            )

        try:
            normalized = await self._normalizer.normalize(image, max_dimension)
        except ImageNormalizationError as e:
            if self._audit_logger:
                await self._audit_logger.log_image_normalization_failed(
                    upload_id=upload_id,
                    error_type=type(e).__name__,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return None, False, self._failure_message(e)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"filename": image.name, "upload_id": str(upload_id)},
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_image_normalized(
                upload_id=upload_id,
                original_size=image.size_bytes,
                normalized_size=normalized.size_bytes,
                mime_type=normalized.mime_type,
                correlation_id=correlation_id,
            )

        return normalized, True, "Image processed. Scanning receipt..."

    @staticmethod
    def _failure_message(error: ImageNormalizationError) -> str:
        if isinstance(error, ImageDecodeError):
            return "This file could not be read as an image. Please upload a photo of the receipt."
        if isinstance(error, ImageResourceError):
            return "This image is too large to process. Please upload a smaller photo."
        return "The image could not be processed. Please try a different photo."


def create_app_components(
    audit_storage: Optional[AuditStorageInterface] = None,
) -> tuple[ReceiptUploadFlow, ImageNormalizer, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        audit_storage: Where audit events are appended.
                    None keeps the audit trail local-only.

    Returns:
        (receipt_upload_flow, normalizer, audit_logger)
    """
    settings = get_settings()
    configure_logging(settings.app.effective_log_level)

    normalizer_settings = settings.normalizer
    codec = PillowRasterCodec(background_color=normalizer_settings.background_color)
    normalizer = ImageNormalizer(codec=codec, settings=normalizer_settings)

    audit_logger = AuditLogger(audit_storage)

    receipt_upload_flow = ReceiptUploadFlow(
        normalizer=normalizer,
        audit_logger=audit_logger,
        app_settings=settings.app,
    )

    return receipt_upload_flow, normalizer, audit_logger
