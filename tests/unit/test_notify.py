"""
Unit tests for SMTP delivery.
"""

from unittest.mock import MagicMock, patch

import pytest

from jobcopilot.utils.notify import SmtpNotifier

SMTP_PATCH = "jobcopilot.utils.notify.smtplib.SMTP"


class TestSmtpNotifier:
    @patch(SMTP_PATCH)
    def test_send_with_tls_and_login(self, mock_smtp):
        server = MagicMock()
        mock_smtp.return_value.__enter__.return_value = server
        notifier = SmtpNotifier("smtp.example.com", 587, user="me@example.com", password="pw")

        notifier.send("me@example.com", "Digest", "Body text")

        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=30)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("me@example.com", "pw")
        message = server.send_message.call_args[0][0]
        assert message["Subject"] == "Digest"
        assert message["To"] == "me@example.com"
        assert message.get_content().strip() == "Body text"

    @patch(SMTP_PATCH)
    def test_no_login_without_password(self, mock_smtp):
        server = MagicMock()
        mock_smtp.return_value.__enter__.return_value = server
        SmtpNotifier("localhost", 25, use_tls=False).send("me@example.com", "S", "B")
        server.starttls.assert_not_called()
        server.login.assert_not_called()

    def test_unconfigured_raises(self):
        with pytest.raises(ValueError):
            SmtpNotifier("").send("me@example.com", "S", "B")

    def test_from_config_reads_password_env(self, monkeypatch):
        monkeypatch.setenv("MY_SMTP_PASS", "secret")
        notifier = SmtpNotifier.from_config({
            "host": "smtp.example.com", "port": 465, "user": "me", "password_env": "MY_SMTP_PASS",
        })
        assert notifier.password == "secret"
        assert notifier.port == 465
        assert notifier.configured is True
