"""
Capability interfaces consumed by the sweeper.

Adapters in the services package implement these against Gmail and S3;
tests substitute in-memory fakes.
"""

from typing import Any, List, Optional, Protocol

from .models import Attachment, Label, Message, Thread


class MailboxService(Protocol):
    """Label, thread and marker operations on a mailbox."""

    def list_labels(self) -> List[Label]:
        ...

    def get_threads(self, label: Label, offset: int, count: int) -> List[Thread]:
        ...

    def unstar(self, message: Message) -> None:
        ...


class FolderStorage(Protocol):
    """
    Hierarchical folder/file store.

    Folder handles are opaque to the domain; they are only passed back into
    the storage that produced them.
    """

    def get_root(self) -> Any:
        ...

    def find_folder(self, parent: Any, name: str) -> Optional[Any]:
        ...

    def create_folder(self, parent: Any, name: str) -> Any:
        ...

    def has_file(self, folder: Any, name: str) -> bool:
        ...

    def create_file(self, folder: Any, name: str, attachment: Attachment) -> None:
        ...
