"""Load image files from disk without blocking the event loop."""

import asyncio
import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from receipt_normalizer.models.image import ImageFile


async def load_image_file(
    path: Union[str, Path],
    mime_type: Optional[str] = None,
) -> ImageFile:
    """
    Read a file into an ImageFile.

    The name is the file's base name, the MIME type is guessed from the
    extension unless given, and last_modified comes from the filesystem.

    Raises:
        FileNotFoundError: If the path does not exist
    """
    path = Path(path)
    content = await asyncio.to_thread(path.read_bytes)
    stat = await asyncio.to_thread(path.stat)

    if mime_type is None:
        mime_type, _ = mimetypes.guess_type(path.name)

    return ImageFile(
        name=path.name,
        mime_type=mime_type or "application/octet-stream",
        content=content,
        last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
    )
