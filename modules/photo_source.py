"""
Resolves photo identifiers to image bytes.

Processed event photos are stored as ``<photo_id>.jpg`` in PHOTO_FOLDER.
"""

from pathlib import Path
from typing import List, Sequence, Union

from werkzeug.utils import secure_filename

from core.exceptions import PhotoNotFoundError
from models.print_job import PrintImage
from logging_config import get_logger


logger = get_logger(__name__)

PHOTO_EXTENSION = ".jpg"


class PhotoSource:
    """Loads processed photos from a folder on disk."""

    def __init__(self, folder: Union[str, Path]):
        self._folder = Path(folder)

    @property
    def folder(self) -> Path:
        return self._folder

    def path_for(self, photo_id: str) -> Path:
        """
        Path of a photo file.

        Raises:
            PhotoNotFoundError: If the id is not a plain file name
        """
        # Rejects ids such as "../secret" or "a/b"
        if not photo_id or secure_filename(photo_id) != photo_id:
            raise PhotoNotFoundError(photo_id)
        return self._folder / f"{photo_id}{PHOTO_EXTENSION}"

    def load(self, photo_id: str) -> PrintImage:
        """
        Read one photo.

        Raises:
            PhotoNotFoundError: If the file does not exist
        """
        path = self.path_for(photo_id)
        if not path.is_file():
            logger.warning(f"Photo {photo_id} not found at {path}")
            raise PhotoNotFoundError(photo_id)

        return PrintImage(data=path.read_bytes(), file_name=path.name)

    def load_many(self, photo_ids: Sequence[str]) -> List[PrintImage]:
        """Read several photos in order. Fails on the first missing one."""
        return [self.load(photo_id) for photo_id in photo_ids]
