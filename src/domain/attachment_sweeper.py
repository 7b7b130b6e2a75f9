"""
Attachment sweep pipeline - core business logic.

For every label under the configured root label:
1. Find threads with starred messages
2. Render a destination path for each attachment of each starred message
3. Store the attachment (existing files are never overwritten)
4. Unstar the message once all its attachments are handled

Collaborator errors are not caught here: the run stops and any message not
yet unstarred stays starred for the next run.
"""

import logging
import time
from typing import Optional

from .interfaces import FolderStorage, MailboxService
from .models import Label, Message, SweepConfig, SweepResult, Thread
from .placement import save_attachment
from .selection import sub_labels, unprocessed_threads
from .templating import build_placeholders, render_template

logger = logging.getLogger(__name__)


class AttachmentSweeper:
    """
    Moves attachments of starred messages into folder storage.

    Args:
        mailbox: Mailbox to read labels, threads and messages from
        storage: Folder storage to write attachments to
        config: Sweep configuration
    """

    def __init__(
        self,
        mailbox: MailboxService,
        storage: FolderStorage,
        config: SweepConfig
    ):
        self.mailbox = mailbox
        self.storage = storage
        self.config = config

    def run(self, result: Optional[SweepResult] = None) -> SweepResult:
        """
        Process every starred message under the root label.

        Args:
            result: Counters to update in place; pass one in to keep the
                partial counts when the run is aborted

        Returns:
            SweepResult with the run counters

        Raises:
            Whatever the mailbox or storage raise; the run is aborted
        """
        start_time = time.time()
        if result is None:
            result = SweepResult()

        labels = sub_labels(self.config.root_label, self.mailbox.list_labels())

        for label in labels:
            result.labels += 1
            threads = unprocessed_threads(self.mailbox, label, self.config.batch_size)
            result.threads += len(threads)

            for thread in threads:
                self._process_thread(thread, label, result)

        logger.info(f"Sweep completed in {time.time() - start_time:.3f}s: {result}")

        return result

    def _process_thread(self, thread: Thread, label: Label, result: SweepResult) -> None:
        """
        Process starred messages in a thread and store their attachments.

        Args:
            thread: Thread to process
            label: Label where this thread was found
            result: Counters to update
        """
        for index, message in enumerate(thread.messages):
            if not message.starred:
                continue

            self._process_message(message, index, label, result)

    def _process_message(
        self,
        message: Message,
        message_index: int,
        label: Label,
        result: SweepResult
    ) -> None:
        logger.info(f"Processing message from {message.received_at}")

        for attachment_index, attachment in enumerate(message.attachments):
            values = build_placeholders(
                attachment,
                message,
                label_name=label.name,
                root_label=self.config.root_label,
                message_index=message_index,
                attachment_index=attachment_index,
                tz=self.config.tzinfo
            )
            path = render_template(self.config.path_template, values)

            outcome = save_attachment(self.storage, attachment, path)
            if outcome.saved:
                result.saved += 1
            else:
                result.skipped += 1

        # Only after every attachment is handled
        self.mailbox.unstar(message)
        message.starred = False
        result.messages += 1
