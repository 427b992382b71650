"""
Image File Model

An ImageFile is the unit that flows in and out of the normalizer: the
receipt photo as the transaction form attached it, and the compact JPEG
handed back.

DESIGN DECISION: The model is frozen. The normalizer only reads its
input and always builds a fresh ImageFile for its output, so a caller's
handle is never mutated behind its back.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImageFile(BaseModel):
    """A named binary image blob with a MIME type and modification time."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        description="File name as supplied by the uploader"
    )
    mime_type: str = Field(
        default="application/octet-stream",
        description="Declared MIME type of the content"
    )
    content: bytes = Field(
        ...,
        repr=False,
        description="Raw file bytes"
    )
    last_modified: datetime = Field(
        default_factory=_utcnow,
        description="Modification timestamp (UTC)"
    )

    @field_validator('mime_type')
    @classmethod
    def lower_mime_type(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    async def read(self) -> bytes:
        """Return the file content (awaitable, like any other upload source)."""
        return self.content

    def to_log_dict(self) -> dict:
        """Summary suitable for structured logging (never the bytes)."""
        return {
            "name": self.name,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
            "last_modified": self.last_modified.isoformat(),
        }
