"""
Data models for the attachment sweep domain.

These type-safe data structures define clear contracts between the sweeper
and the mailbox/storage adapters.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Dict, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_ROOT_LABEL = 'Finances'

# Placeholders:
#   $name     original attachment name
#   $ext      lowercased file extension of the attachment
#   $domain   domain part of the sender address
#   $sublabel label path below the root label where the thread was found
#   $y $m $d  year, month, day the message was received
#   $h $i $s  hour, minute, second the message was received
#   $mc       message number in the thread, starting at 0
#   $ac       attachment number in the message, starting at 0
DEFAULT_PATH_TEMPLATE = 'Finances/Documents/$y/$m/$sublabel/$y$m$d-$domain--$mc-$ac.$ext'

DEFAULT_BATCH_SIZE = 50
MAX_BATCH_SIZE = 500  # Gmail hard cap per threads page


@dataclass
class Attachment:
    """
    Email attachment with its binary payload.

    Attributes:
        name: Original filename
        content: Binary content
        content_type: MIME type (e.g., "application/pdf")
    """
    name: str
    content: bytes = b''
    content_type: str = 'application/octet-stream'

    @property
    def size(self) -> int:
        """Payload size in bytes."""
        return len(self.content)


@dataclass
class Message:
    """
    A single message inside a thread.

    Attributes:
        message_id: Mailbox identifier of the message
        sender: Raw sender address (From header)
        received_at: When the message was received (timezone-aware)
        attachments: Attachments in their natural order
        starred: Processing cursor; True means the message still needs work
    """
    message_id: str
    sender: str
    received_at: datetime
    attachments: List[Attachment] = field(default_factory=list)
    starred: bool = False


@dataclass
class Thread:
    """Ordered sequence of messages."""
    thread_id: str
    messages: List[Message] = field(default_factory=list)

    @property
    def has_starred_messages(self) -> bool:
        return any(m.starred for m in self.messages)


@dataclass
class Label:
    """
    Mailbox label, hierarchical through '/' separated names.

    Attributes:
        name: Full label name (e.g., "Finances/Utilities")
        label_id: Adapter-specific identifier (None for in-memory labels)
    """
    name: str
    label_id: Optional[str] = None


@dataclass
class SweepConfig:
    """
    Deploy-time configuration for a sweep run.

    Attributes:
        root_label: Label whose hierarchy is swept
        path_template: Destination path with $placeholders
        batch_size: Threads fetched per page (1..500)
        timezone: IANA zone used to render the date placeholders
    """
    root_label: str = DEFAULT_ROOT_LABEL
    path_template: str = DEFAULT_PATH_TEMPLATE
    batch_size: int = DEFAULT_BATCH_SIZE
    timezone: str = 'UTC'

    def __post_init__(self):
        if not self.root_label:
            raise ValueError("Root label cannot be empty")
        if not self.path_template:
            raise ValueError("Path template cannot be empty")
        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise ValueError(
                f"Batch size must be between 1 and {MAX_BATCH_SIZE}, got {self.batch_size}"
            )
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {self.timezone}")

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_env(cls) -> 'SweepConfig':
        """
        Build configuration from environment variables.

        Reads GMAIL_ROOT_LABEL, PATH_TEMPLATE, THREAD_BATCH_SIZE and
        SWEEP_TIMEZONE, falling back to the defaults.

        Raises:
            ValueError: If a value is invalid
        """
        batch_size = os.environ.get('THREAD_BATCH_SIZE', str(DEFAULT_BATCH_SIZE))
        try:
            batch_size = int(batch_size)
        except ValueError:
            raise ValueError(f"THREAD_BATCH_SIZE must be an integer, got {batch_size!r}")

        return cls(
            root_label=os.environ.get('GMAIL_ROOT_LABEL', DEFAULT_ROOT_LABEL),
            path_template=os.environ.get('PATH_TEMPLATE', DEFAULT_PATH_TEMPLATE),
            batch_size=batch_size,
            timezone=os.environ.get('SWEEP_TIMEZONE', 'UTC'),
        )


@dataclass
class SaveOutcome:
    """Result of placing one attachment."""
    path: str
    saved: bool


@dataclass
class SweepResult:
    """
    Summary of a sweep run.

    Collaborator failures abort the run; the entry point turns them into
    a result with success=False instead of letting them escape.

    Attributes:
        success: Whether the run completed
        labels: Labels visited
        threads: Threads with starred messages found
        messages: Messages processed and unstarred
        saved: Attachments stored
        skipped: Attachments skipped because the file already existed
        error_message: Error description (if the run failed)
    """
    success: bool = True
    labels: int = 0
    threads: int = 0
    messages: int = 0
    saved: int = 0
    skipped: int = 0
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'success': self.success,
            'labels': self.labels,
            'threads': self.threads,
            'messages': self.messages,
            'saved': self.saved,
            'skipped': self.skipped,
        }
        if self.error_message:
            result['error'] = self.error_message
        return result

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.success:
            return (
                f"SweepResult(success=True, messages={self.messages}, "
                f"saved={self.saved}, skipped={self.skipped})"
            )
        else:
            return f"SweepResult(success=False, error={self.error_message})"
