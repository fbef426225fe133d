"""Tests for SMTP delivery and template rendering."""

import smtplib

import pytest

from core.exceptions import MailDeliveryError
from utils.mailer import Mailer


class RecordingSMTP:
    """Stands in for an SMTP connection and records what the mailer does."""

    instances = []
    fail_on_send = None

    def __init__(self, host, port, timeout=None, context=None):
        self.host = host
        self.port = port
        self.calls = []
        RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.calls.append("quit")
        return False

    def starttls(self, context=None):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(("login", username, password))

    def send_message(self, msg):
        if RecordingSMTP.fail_on_send is not None:
            raise RecordingSMTP.fail_on_send
        self.calls.append(("send_message", msg))


@pytest.fixture
def smtp(monkeypatch):
    RecordingSMTP.instances = []
    RecordingSMTP.fail_on_send = None
    monkeypatch.setattr(smtplib, "SMTP", RecordingSMTP)
    monkeypatch.setattr(smtplib, "SMTP_SSL", RecordingSMTP)
    return RecordingSMTP


def make_mailer(**overrides):
    options = {
        "host": "smtp.example.com",
        "port": 587,
        "sender": "portal@example.com",
        "username": "portal",
        "password": "smtp-secret",
        "frontend_url": "http://frontend.test",
    }
    options.update(overrides)
    return Mailer(**options)


def test_send_uses_starttls_and_login(smtp):
    make_mailer().send("esi@example.com", "Submitted Assignment", "<p>Hi</p>")

    [conn] = smtp.instances
    assert (conn.host, conn.port) == ("smtp.example.com", 587)
    assert conn.calls[0] == "starttls"
    assert conn.calls[1] == ("login", "portal", "smtp-secret")
    msg = conn.calls[2][1]
    assert msg["From"] == "portal@example.com"
    assert msg["To"] == "esi@example.com"
    assert msg["Subject"] == "Submitted Assignment"
    assert "<p>Hi</p>" in msg.get_body(preferencelist=("html",)).get_content()


def test_send_without_credentials_skips_login(smtp):
    make_mailer(username=None, password=None, use_tls=False).send("a@example.com", "S", "<p/>")

    [conn] = smtp.instances
    assert [c if isinstance(c, str) else c[0] for c in conn.calls] == ["send_message", "quit"]


def test_send_over_ssl_does_not_starttls(smtp):
    make_mailer(port=465, use_ssl=True).send("a@example.com", "S", "<p/>")

    [conn] = smtp.instances
    assert "starttls" not in conn.calls


@pytest.mark.parametrize(
    "error",
    [
        smtplib.SMTPRecipientsRefused({"a@example.com": (550, b"no such user")}),
        smtplib.SMTPServerDisconnected("gone"),
        ConnectionRefusedError("refused"),
    ],
)
def test_smtp_failures_become_delivery_errors(smtp, error):
    smtp.fail_on_send = error

    with pytest.raises(MailDeliveryError):
        make_mailer().send("a@example.com", "S", "<p/>")


def test_render_exposes_frontend_url():
    html = make_mailer().render(
        "submission_student.html",
        firstName="Esi",
        lastName="Owusu",
        studentId="STU-00001",
        assignmentCode="ASS-001",
    )

    assert "http://frontend.test/assignments/ASS-001" in html
    assert "Esi Owusu" in html
