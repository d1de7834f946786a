from __future__ import annotations

import smtplib

from tourbook.mailer import RESET_SUBJECT, Mailer


def test_dev_mode_logs_instead_of_sending(caplog):
    mailer = Mailer()
    assert mailer.is_configured is False

    with caplog.at_level("INFO", logger="tourbook.mailer"):
        assert mailer.send("ana@example.com", "http://test/resetPassword/abc") is True

    assert "resetPassword/abc" not in caplog.text
    assert "ana@example.com" not in caplog.text


def test_smtp_failure_is_reported(monkeypatch):
    def refuse(*args, **kwargs):
        raise OSError("connection refused")

    monkeypatch.setattr(smtplib, "SMTP", refuse)
    mailer = Mailer(smtp_host="smtp.example.com", from_email="noreply@example.com")

    assert mailer.send("ana@example.com", "http://test/resetPassword/abc") is False


def test_smtp_delivery(monkeypatch):
    delivered = []

    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            self.host = host

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self, context=None):
            pass

        def login(self, user, password):
            delivered.append(("login", user))

        def sendmail(self, sender, recipients, message):
            delivered.append((sender, recipients, message))

    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    mailer = Mailer(
        smtp_host="smtp.example.com",
        smtp_user="mailer",
        smtp_password="pw",
        from_email="noreply@example.com",
    )

    assert mailer.send("ana@example.com", "http://test/resetPassword/abc") is True
    assert delivered[0] == ("login", "mailer")
    sender, recipients, message = delivered[1]
    assert sender == "noreply@example.com"
    assert recipients == ["ana@example.com"]
    assert "Subject: " + RESET_SUBJECT in message
