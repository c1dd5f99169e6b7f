import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .core.config import Settings
from .exceptions import NotificationFailed

logger = logging.getLogger(__name__)

template_dir = os.path.join(os.path.dirname(__file__), 'email_templates')
env = Environment(loader=FileSystemLoader(template_dir), autoescape=select_autoescape(['html']))


def render(template_name: str, context: dict) -> str:
    return env.get_template(template_name).render(context)


class SmtpEmailSender:
    """Delivers mail through the configured SMTP relay using STARTTLS."""

    def __init__(self, settings: Settings):
        self.server = settings.SMTP_SERVER
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD
        self.from_addr = settings.EMAIL_FROM or settings.SMTP_USER

    def send(self, to: str, subject: str, body: str):
        msg = MIMEMultipart()
        msg['From'] = self.from_addr
        msg['To'] = to
        msg['Subject'] = subject
        msg.attach(MIMEText(body, 'html'))

        try:
            with smtplib.SMTP(self.server, self.port, timeout=10) as server:
                server.starttls()
                if self.user:
                    server.login(self.user, self.password)
                server.sendmail(self.from_addr, to, msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email %r to %s: %s", subject, to, e)
            raise NotificationFailed() from e
        logger.info("Sent email %r to %s", subject, to)


class ConsoleEmailSender:
    """Used when no SMTP relay is configured: the message goes to the log.

    Bodies carry one-time codes, so they are only written at DEBUG.
    """

    def send(self, to: str, subject: str, body: str):
        logger.info("Email not sent (no SMTP relay): to=%s subject=%r", to, subject)
        logger.debug("Email body for %s:\n%s", to, body)


def build_sender(settings: Settings):
    if settings.SMTP_SERVER:
        return SmtpEmailSender(settings)
    logger.warning("SMTP_SERVER is not set; outgoing email will be logged instead of sent")
    return ConsoleEmailSender()


def send_otp_email(sender, to_email: str, otp: str, expire_minutes: int, app_name: str):
    sender.send(
        to=to_email,
        subject=f"Your {app_name} verification code",
        body=render("verification.html", {"otp": otp, "minutes": expire_minutes, "app_name": app_name}),
    )


def send_password_reset_email(sender, to_email: str, otp: str, expire_minutes: int, app_name: str):
    sender.send(
        to=to_email,
        subject=f"Reset your {app_name} password",
        body=render("password_reset.html", {"otp": otp, "minutes": expire_minutes, "app_name": app_name}),
    )


def send_welcome_email(sender, to_email: str, username: str, app_name: str):
    # Runs as a background task after signup; the account already exists.
    try:
        sender.send(
            to=to_email,
            subject=f"Welcome to {app_name}!",
            body=render("welcome.html", {"username": username, "app_name": app_name}),
        )
    except NotificationFailed:
        logger.warning("Welcome email to %s was not delivered", to_email)
