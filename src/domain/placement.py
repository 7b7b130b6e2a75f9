"""
Attachment placement in hierarchical storage.

Materializes the folder chain of a destination path and stores the
attachment there, never overwriting an existing file.
"""

import logging
from typing import Any

from .interfaces import FolderStorage
from .models import Attachment, SaveOutcome

logger = logging.getLogger(__name__)


def get_or_make_folder(storage: FolderStorage, path: str) -> Any:
    """
    Return the folder at the given path, creating missing segments.

    Empty segments (leading, trailing or doubled slashes) are ignored, so
    repeated calls with the same path resolve to the same folder.

    Args:
        storage: Folder storage to walk
        path: Slash-delimited folder path relative to the storage root

    Returns:
        Folder handle of the last segment (the root for an empty path)
    """
    folder = storage.get_root()

    for name in path.split('/'):
        if name == '':
            continue

        child = storage.find_folder(folder, name)
        if child is None:
            logger.debug(f"Creating folder {name!r}")
            child = storage.create_folder(folder, name)
        folder = child

    return folder


def save_attachment(
    storage: FolderStorage,
    attachment: Attachment,
    path: str
) -> SaveOutcome:
    """
    Save an attachment at the given path.

    Args:
        storage: Folder storage to write to
        attachment: Attachment to store
        path: Destination path; the last segment is the file name

    Returns:
        SaveOutcome with saved=False if a file with that name already existed
    """
    parts = path.split('/')
    filename = parts.pop()
    folder_path = '/'.join(parts)

    folder = get_or_make_folder(storage, folder_path)

    if storage.has_file(folder, filename):
        logger.warning(f"{path} already exists. File not overwritten.")
        return SaveOutcome(path=path, saved=False)

    storage.create_file(folder, filename, attachment)
    logger.info(f"{path} saved.")

    return SaveOutcome(path=path, saved=True)
