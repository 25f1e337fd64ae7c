"""
Unit tests for the mbox mail source.
"""

import mailbox
from email.message import EmailMessage

import pytest

from jobcopilot.exceptions import MailSourceError
from jobcopilot.sources import MboxMailSource

OWNER = "me@example.com"


def _message(msg_id, sender, to, subject, date, body, in_reply_to=None, references=None):
    msg = EmailMessage()
    msg["Message-ID"] = f"<{msg_id}>"
    msg["From"] = sender
    msg["To"] = to
    msg["Subject"] = subject
    msg["Date"] = date
    if in_reply_to:
        msg["In-Reply-To"] = f"<{in_reply_to}>"
    if references:
        msg["References"] = " ".join(f"<{r}>" for r in references)
    msg.set_content(body)
    return msg


@pytest.fixture
def mbox_path(tmp_path):
    path = tmp_path / "all.mbox"
    box = mailbox.mbox(str(path))
    box.lock()
    try:
        box.add(_message("a1@x", OWNER, "jane@acme.io", "SWE Interview",
                         "Mon, 02 Mar 2026 09:00:00 +0000", "Looking forward to it"))
        box.add(_message("a2@acme", "jane@acme.io", OWNER, "Re: SWE Interview",
                         "Tue, 03 Mar 2026 09:00:00 +0000", "Does Thursday work?",
                         in_reply_to="a1@x", references=["a1@x"]))
        box.add(_message("b1@x", OWNER, "bob@corp.com", "Intro",
                         "Sun, 01 Mar 2026 09:00:00 +0000", "Hi Bob"))
        box.add(_message("c1@spam", "promo@shop.com", OWNER, "Sale",
                         "Wed, 04 Mar 2026 09:00:00 +0000", "50% off"))
        box.flush()
    finally:
        box.unlock()
        box.close()
    return str(path)


class TestMboxMailSource:
    def test_groups_and_orders_threads(self, mbox_path):
        threads = MboxMailSource(mbox_path, owner_email=OWNER).search_sent(50)

        assert [t.id for t in threads] == ["a1@x", "b1@x"]
        interview = threads[0]
        assert interview.message_count == 2
        assert interview.recipient == "jane@acme.io"
        assert interview.last.body.strip() == "Does Thursday work?"
        assert interview.last_from(OWNER) is False

    def test_limit(self, mbox_path):
        assert len(MboxMailSource(mbox_path, owner_email=OWNER).search_sent(1)) == 1

    def test_without_owner_uses_most_frequent_sender(self, mbox_path):
        threads = MboxMailSource(mbox_path).search_sent(50)
        assert [t.id for t in threads] == ["a1@x", "b1@x"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(MailSourceError):
            MboxMailSource(str(tmp_path / "missing.mbox")).search_sent(10)
