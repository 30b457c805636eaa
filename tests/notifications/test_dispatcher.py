from src.hr_portal.hr_portal.notifications.dispatcher import NotificationDispatcher
from src.hr_portal.hr_portal.notifications.mailer import SmtpMailer
from src.hr_portal.hr_portal.notifications.model import Notification
from src.hr_portal.hr_portal.notifications.outbox import QueueOutbox


class FakeMailer:
    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send(self, notification):
        if notification.recipient in self.fail_for:
            raise RuntimeError("smtp down")
        self.sent.append(notification)
        return True


def _note(recipient):
    return Notification(recipient=recipient, subject="Hello", html_body="<p>hi</p>")


def test_dispatch_pending_delivers_and_survives_failures():
    outbox = QueueOutbox()
    mailer = FakeMailer(fail_for={"bad@example.com"})
    for r in ("a@example.com", "bad@example.com", "b@example.com"):
        outbox.enqueue(_note(r))

    delivered = NotificationDispatcher(outbox, mailer).dispatch_pending()

    assert delivered == 2
    assert [n.recipient for n in mailer.sent] == ["a@example.com", "b@example.com"]
    assert len(outbox) == 0


def test_outbox_drops_messages_without_recipient():
    outbox = QueueOutbox()
    outbox.enqueue(_note(""))
    assert len(outbox) == 0


def test_background_worker_drains_queue():
    outbox = QueueOutbox()
    mailer = FakeMailer()
    dispatcher = NotificationDispatcher(outbox, mailer, poll_seconds=0.05)
    dispatcher.start()
    try:
        outbox.enqueue(_note("a@example.com"))
        outbox._queue.join()
    finally:
        dispatcher.stop()
    assert [n.recipient for n in mailer.sent] == ["a@example.com"]


def test_unconfigured_smtp_skips_delivery():
    assert SmtpMailer(smtp_user="", smtp_password="").send(_note("a@example.com")) is False


def test_disabled_outbox_keeps_nothing():
    outbox = QueueOutbox(enabled=False)
    outbox.enqueue(_note("a@example.com"))
    assert len(outbox) == 0


def test_full_outbox_drops_extra_messages():
    outbox = QueueOutbox(maxsize=1)
    outbox.enqueue(_note("a@example.com"))
    outbox.enqueue(_note("b@example.com"))
    assert [n.recipient for n in outbox.drain()] == ["a@example.com"]
