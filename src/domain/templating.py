"""
Destination path templating.

Builds the placeholder set for an attachment and substitutes it into the
configured path template.
"""

import logging
import re
from datetime import datetime, tzinfo
from typing import Dict, Optional, Union

from .models import Attachment, Message

logger = logging.getLogger(__name__)

PlaceholderValue = Union[str, int]

# Everything after the last dot, if any
EXTENSION_REGEX = re.compile(r'(?:\.([^.]+))?$')

UNKNOWN_EXTENSION = 'unknown'


def resolve_extension(name: str) -> str:
    """
    Get the lowercased extension of a file name.

    Args:
        name: File name (e.g., "report.PDF")

    Returns:
        Extension without the dot, or "unknown" when there is none

    Example:
        >>> resolve_extension("archive.tar.gz")
        'gz'
        >>> resolve_extension("README")
        'unknown'
    """
    match = EXTENSION_REGEX.search(name)
    if match and match.group(1):
        return match.group(1).lower()
    return UNKNOWN_EXTENSION


def render_template(template: str, values: Dict[str, PlaceholderValue]) -> str:
    """
    Apply $placeholders to a template.

    Longer keys are matched first so that "$mc" is never consumed by
    "$m". The template is scanned once: inserted values are never scanned
    again, so an attachment named "scan$d.pdf" keeps its "$d". "$tokens"
    with no matching key are left as they are.

    Args:
        template: Template with $key tokens
        values: Placeholder values keyed without the leading "$"

    Returns:
        str: The rendered template
    """
    if not values:
        return template

    ordered = sorted(values, key=len, reverse=True)
    pattern = re.compile(r'\$(' + '|'.join(map(re.escape, ordered)) + ')')

    return pattern.sub(lambda match: str(values[match.group(1)]), template)


def sender_domain(sender: str) -> str:
    """
    Extract the domain part of a sender address.

    Works on bare addresses and on display forms such as
    "Billing <billing@example.com>"; trailing non-letter characters are
    stripped.

    Args:
        sender: Raw From header value

    Returns:
        Domain, or an empty string when the sender has no "@"
    """
    parts = sender.split('@')
    if len(parts) < 2:
        logger.warning(f"Sender has no domain part: {sender!r}")
        return ''

    return re.sub(r'[^a-zA-Z]+$', '', parts[1])


def sub_label_suffix(label_name: str, root_label: str) -> str:
    """Label name below the root label ("" for the root itself)."""
    return label_name[len(root_label) + 1:]


def build_placeholders(
    attachment: Attachment,
    message: Message,
    label_name: str,
    root_label: str,
    message_index: int,
    attachment_index: int,
    tz: Optional[tzinfo] = None
) -> Dict[str, PlaceholderValue]:
    """
    Build the placeholder set for one attachment.

    Args:
        attachment: Attachment being stored
        message: Message the attachment belongs to
        label_name: Label where the thread was found
        root_label: Configured root label
        message_index: Position of the message in its thread
        attachment_index: Position of the attachment in its message
        tz: Zone for the date placeholders (received_at is used as-is if None)

    Returns:
        Dict of placeholder values
    """
    received = _localize(message.received_at, tz)

    return {
        'name': attachment.name,
        'ext': resolve_extension(attachment.name),
        'domain': sender_domain(message.sender),
        'sublabel': sub_label_suffix(label_name, root_label),
        'y': f"{received.year:04d}",
        'm': f"{received.month:02d}",
        'd': f"{received.day:02d}",
        'h': f"{received.hour:02d}",
        'i': f"{received.minute:02d}",
        's': f"{received.second:02d}",
        'mc': message_index,
        'ac': attachment_index,
    }


def _localize(value: datetime, tz: Optional[tzinfo]) -> datetime:
    # Naive timestamps are taken to be in the target zone already
    if tz is None or value.tzinfo is None:
        return value
    return value.astimezone(tz)
