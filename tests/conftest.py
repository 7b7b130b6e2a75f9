"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

# Add src to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

# Set up test environment variables before importing any modules
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')
os.environ.setdefault('LOG_LEVEL', 'INFO')

from domain.models import Attachment, Label, Message, Thread  # noqa: E402


class FakeFolder:
    """In-memory folder node."""

    def __init__(self, name: str):
        self.name = name
        self.folders: Dict[str, 'FakeFolder'] = {}
        self.files: Dict[str, bytes] = {}


class FakeStorage:
    """In-memory FolderStorage that records what it creates."""

    def __init__(self):
        self.root = FakeFolder('')
        self.created_folders: List[str] = []
        self.created_files: List[str] = []

    def get_root(self):
        return self.root

    def find_folder(self, parent, name) -> Optional[FakeFolder]:
        return parent.folders.get(name)

    def create_folder(self, parent, name):
        folder = FakeFolder(name)
        parent.folders[name] = folder
        self.created_folders.append(name)
        return folder

    def has_file(self, folder, name) -> bool:
        return name in folder.files

    def create_file(self, folder, name, attachment):
        folder.files[name] = attachment.content
        self.created_files.append(name)

    def read(self, path: str) -> Optional[bytes]:
        """Content of the file at a slash-delimited path, or None."""
        parts = [p for p in path.split('/') if p]
        folder = self.root
        for name in parts[:-1]:
            folder = folder.folders.get(name)
            if folder is None:
                return None
        return folder.files.get(parts[-1])


class FakeMailbox:
    """In-memory MailboxService."""

    def __init__(self, labels: List[Label], threads: Dict[str, List[Thread]]):
        self.labels = labels
        self.threads = threads
        self.get_threads_calls = []
        self.unstarred: List[str] = []

    def list_labels(self):
        return list(self.labels)

    def get_threads(self, label, offset, count):
        self.get_threads_calls.append((label.name, offset, count))
        return self.threads.get(label.name, [])[offset:offset + count]

    def unstar(self, message):
        self.unstarred.append(message.message_id)


def make_message(
    message_id: str = 'msg-1',
    sender: str = 'billing@example.com',
    received_at: datetime = datetime(2024, 3, 5, 10, 7, 9, tzinfo=timezone.utc),
    attachments: Optional[List[Attachment]] = None,
    starred: bool = True
) -> Message:
    return Message(
        message_id=message_id,
        sender=sender,
        received_at=received_at,
        attachments=attachments if attachments is not None else [],
        starred=starred
    )


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables for all tests."""
    # Environment variables are already set above
    yield
