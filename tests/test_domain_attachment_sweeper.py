"""
Tests for the attachment sweep pipeline.
"""

import pytest
from unittest.mock import MagicMock
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from domain.attachment_sweeper import AttachmentSweeper
from domain.models import Attachment, Label, SweepConfig, SweepResult, Thread
from conftest import FakeMailbox, make_message

# No "/" so the rendered path is a single file name at the storage root
TEMPLATE = '$y-$m-$d $h:$i:$s|$domain|$sublabel|$mc|$ac|$ext|$name'


class TestAttachmentSweeper:
    """Test end-to-end sweeping with in-memory collaborators."""

    def test_single_marked_message(self, storage):
        """Test the rendered path and the unstar of one message."""
        message = make_message(attachments=[Attachment(name='invoice.PDF', content=b'%PDF')])
        labels = [Label('Finances'), Label('Finances/Utilities')]
        mailbox = FakeMailbox(labels, {
            'Finances/Utilities': [Thread(thread_id='t1', messages=[message])]
        })
        config = SweepConfig(path_template=TEMPLATE)

        result = AttachmentSweeper(mailbox, storage, config).run()

        expected = '2024-03-05 10:07:09|example.com|Utilities|0|0|pdf|invoice.PDF'
        assert storage.created_files == [expected]
        assert storage.root.files[expected] == b'%PDF'
        assert mailbox.unstarred == ['msg-1']
        assert message.starred is False
        assert result.success is True
        assert result.labels == 2
        assert result.threads == 1
        assert result.messages == 1
        assert result.saved == 1
        assert result.skipped == 0

    def test_default_template_layout(self, storage):
        message = make_message(attachments=[Attachment(name='invoice.PDF', content=b'%PDF')])
        mailbox = FakeMailbox([Label('Finances/Utilities')], {
            'Finances/Utilities': [Thread(thread_id='t1', messages=[message])]
        })

        AttachmentSweeper(mailbox, storage, SweepConfig()).run()

        assert storage.read('Finances/Documents/2024/03/Utilities/20240305-example.com--0-0.pdf') == b'%PDF'

    def test_message_and_attachment_ordinals(self, storage):
        """Test $mc counts every message in the thread and $ac resets per message."""
        first = make_message(message_id='m0', starred=False, attachments=[Attachment(name='skip.pdf')])
        second = make_message(message_id='m1', attachments=[
            Attachment(name='a.pdf'),
            Attachment(name='b.csv'),
        ])
        third = make_message(message_id='m2', attachments=[Attachment(name='c.txt')])
        mailbox = FakeMailbox([Label('Finances')], {
            'Finances': [Thread(thread_id='t1', messages=[first, second, third])]
        })
        config = SweepConfig(path_template='$mc-$ac.$ext')

        result = AttachmentSweeper(mailbox, storage, config).run()

        assert storage.created_files == ['1-0.pdf', '1-1.csv', '2-0.txt']
        assert mailbox.unstarred == ['m1', 'm2']
        assert result.messages == 2

    def test_collision_skips_but_still_unstars(self, storage):
        message_a = make_message(message_id='a', attachments=[Attachment(name='x.pdf', content=b'one')])
        message_b = make_message(message_id='b', attachments=[Attachment(name='x.pdf', content=b'two')])
        mailbox = FakeMailbox([Label('Finances')], {
            'Finances': [
                Thread(thread_id='t1', messages=[message_a]),
                Thread(thread_id='t2', messages=[message_b]),
            ]
        })
        config = SweepConfig(path_template='Docs/$name')

        result = AttachmentSweeper(mailbox, storage, config).run()

        assert storage.read('Docs/x.pdf') == b'one'
        assert storage.created_files == ['x.pdf']
        assert mailbox.unstarred == ['a', 'b']
        assert result.saved == 1
        assert result.skipped == 1

    def test_unrelated_labels_ignored(self, storage):
        message = make_message(attachments=[Attachment(name='a.pdf')])
        mailbox = FakeMailbox([Label('Personal'), Label('FinancesOld')], {
            'Personal': [Thread(thread_id='t1', messages=[message])],
            'FinancesOld': [Thread(thread_id='t2', messages=[message])],
        })

        result = AttachmentSweeper(mailbox, storage, SweepConfig()).run()

        assert mailbox.get_threads_calls == []
        assert storage.created_files == []
        assert result.labels == 0

    def test_message_without_attachments_is_unstarred(self, storage):
        message = make_message(attachments=[])
        mailbox = FakeMailbox([Label('Finances')], {
            'Finances': [Thread(thread_id='t1', messages=[message])]
        })

        AttachmentSweeper(mailbox, storage, SweepConfig()).run()

        assert mailbox.unstarred == ['msg-1']

    def test_sender_without_domain(self, storage):
        message = make_message(sender='postmaster', attachments=[Attachment(name='a.pdf')])
        mailbox = FakeMailbox([Label('Finances')], {
            'Finances': [Thread(thread_id='t1', messages=[message])]
        })

        AttachmentSweeper(mailbox, storage, SweepConfig(path_template='[$domain]$name')).run()

        assert storage.created_files == ['[]a.pdf']
        assert mailbox.unstarred == ['msg-1']

    def test_storage_failure_leaves_message_starred(self):
        """Test a failed upload aborts the run before the unstar."""
        message = make_message(attachments=[Attachment(name='a.pdf'), Attachment(name='b.pdf')])
        mailbox = FakeMailbox([Label('Finances')], {
            'Finances': [Thread(thread_id='t1', messages=[message])]
        })
        storage = MagicMock()
        storage.find_folder.return_value = 'folder'
        storage.has_file.return_value = False
        storage.create_file.side_effect = RuntimeError("storage unavailable")

        with pytest.raises(RuntimeError, match="storage unavailable"):
            AttachmentSweeper(mailbox, storage, SweepConfig()).run()

        assert mailbox.unstarred == []
        assert message.starred is True

    def test_partial_counts_kept_on_abort(self):
        """Test a caller-supplied result holds the work done before a failure."""
        done = make_message(message_id='done', attachments=[Attachment(name='a.pdf')])
        failing = make_message(message_id='failing', attachments=[
            Attachment(name='b.pdf'),
            Attachment(name='c.pdf'),
        ])
        mailbox = FakeMailbox([Label('Finances')], {
            'Finances': [
                Thread(thread_id='t1', messages=[done]),
                Thread(thread_id='t2', messages=[failing]),
            ]
        })
        storage = MagicMock()
        storage.find_folder.return_value = 'folder'
        storage.has_file.return_value = False
        storage.create_file.side_effect = [None, None, RuntimeError("storage unavailable")]
        result = SweepResult()

        with pytest.raises(RuntimeError, match="storage unavailable"):
            AttachmentSweeper(mailbox, storage, SweepConfig()).run(result)

        assert mailbox.unstarred == ['done']
        assert failing.starred is True
        assert (result.labels, result.threads, result.messages, result.saved) == (1, 2, 1, 2)

    def test_uses_configured_batch_size(self, storage):
        mailbox = FakeMailbox([Label('Finances')], {})

        AttachmentSweeper(mailbox, storage, SweepConfig(batch_size=10)).run()

        assert mailbox.get_threads_calls == [('Finances', 0, 10)]


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
