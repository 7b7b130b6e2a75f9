"""
Label and thread selection.
"""

import logging
from typing import Iterable, Iterator, List

from .interfaces import MailboxService
from .models import DEFAULT_BATCH_SIZE, Label, Thread

logger = logging.getLogger(__name__)


def sub_labels(root_name: str, labels: Iterable[Label]) -> Iterator[Label]:
    """
    Get the given label and all its sub labels.

    Args:
        root_name: Name of the root label
        labels: All labels of the mailbox

    Returns:
        Lazy iterator over matching labels, in input order
    """
    prefix = root_name + '/'
    return (
        label for label in labels
        if label.name == root_name or label.name.startswith(prefix)
    )


def unprocessed_threads(
    mailbox: MailboxService,
    label: Label,
    batch_size: int = DEFAULT_BATCH_SIZE
) -> List[Thread]:
    """
    Get all threads in the label that have starred messages.

    Pages through the label until a short batch signals the end.

    Args:
        mailbox: Mailbox to query
        label: Label to scan
        batch_size: Threads per page

    Returns:
        List of threads in discovery order
    """
    offset = 0
    result = []

    while True:
        threads = mailbox.get_threads(label, offset, batch_size)
        offset += batch_size

        result.extend(t for t in threads if t.has_starred_messages)

        if len(threads) != batch_size:
            break

    logger.info(f"{len(result)} threads to process in {label.name}")

    return result
