import enum
import logging
import smtplib
import socket
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional

from ..core.config import Settings
from ..core.exceptions import EmailConfigurationError

logger = logging.getLogger(__name__)


class DeliveryErrorKind(str, enum.Enum):
    AUTHENTICATION_FAILURE = "authentication_failure"
    CONNECTION_FAILURE = "connection_failure"
    UNKNOWN = "unknown"


@dataclass
class DeliveryResult:
    delivered: bool
    message_id: Optional[str] = None
    error_kind: Optional[DeliveryErrorKind] = None
    error: Optional[str] = None


ERROR_MESSAGES = {
    DeliveryErrorKind.AUTHENTICATION_FAILURE: (
        "Email authentication failed. Please check SMTP_USER and SMTP_PASSWORD."
    ),
    DeliveryErrorKind.CONNECTION_FAILURE: (
        "Connection error. Could not reach the mail server."
    ),
}


def classify_smtp_error(exc: BaseException) -> DeliveryErrorKind:
    """Map an exception raised while talking to the mail server to a failure kind."""
    if isinstance(exc, smtplib.SMTPAuthenticationError):
        return DeliveryErrorKind.AUTHENTICATION_FAILURE
    if isinstance(exc, (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected)):
        return DeliveryErrorKind.CONNECTION_FAILURE
    # SMTPException subclasses OSError, so protocol errors must be ruled out first
    if isinstance(exc, smtplib.SMTPException):
        return DeliveryErrorKind.UNKNOWN
    if isinstance(exc, (socket.timeout, TimeoutError, ConnectionError, OSError)):
        return DeliveryErrorKind.CONNECTION_FAILURE
    return DeliveryErrorKind.UNKNOWN


def _failure(exc: BaseException) -> DeliveryResult:
    kind = classify_smtp_error(exc)
    return DeliveryResult(
        delivered=False,
        error_kind=kind,
        error=ERROR_MESSAGES.get(kind) or str(exc) or exc.__class__.__name__,
    )


class SMTPEmailChannel:
    """
    Transactional email sender over SMTP with STARTTLS.

    Built once at startup and shared between requests. Each call opens its
    own connection and makes exactly one delivery attempt.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        from_name: str = "MediCare Hub",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_name = from_name
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SMTPEmailChannel":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            from_name=settings.EMAIL_FROM_NAME,
            timeout=settings.SMTP_TIMEOUT,
        )

    def check_configuration(self) -> None:
        if not self.username:
            raise EmailConfigurationError("SMTP_USER is not set in environment variables")
        if not self.password:
            raise EmailConfigurationError("SMTP_PASSWORD is not set in environment variables")

    def _connect(self) -> smtplib.SMTP:
        """Open, secure and authenticate a connection."""
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            server.ehlo()
            server.starttls()
            server.ehlo()
            server.login(self.username, self.password)
        except BaseException:
            server.close()
            raise
        return server

    def verify(self) -> DeliveryResult:
        """Check that the mail server accepts our credentials."""
        self.check_configuration()
        try:
            server = self._connect()
            server.quit()
        except Exception as exc:
            logger.error(f"Email verification error: {exc}")
            return _failure(exc)
        return DeliveryResult(delivered=True)

    def build_message(self, to: str, subject: str, html_body: str, text_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.from_name, self.username))
        message["To"] = to
        message["Subject"] = subject
        domain = self.username.split("@")[-1] if "@" in self.username else None
        message["Message-ID"] = make_msgid(domain=domain)
        message.set_content(text_body)
        message.add_alternative(html_body, subtype="html")
        return message

    def send(self, to: str, subject: str, html_body: str, text_body: str) -> DeliveryResult:
        """
        Deliver one message.

        Raises:
            EmailConfigurationError: credentials are missing; nothing is sent.
        """
        self.check_configuration()
        message = self.build_message(to, subject, html_body, text_body)

        try:
            server = self._connect()
            logger.info("Email server connection verified")
            try:
                server.send_message(message)
            finally:
                try:
                    server.quit()
                except smtplib.SMTPException:
                    server.close()
        except Exception as exc:
            result = _failure(exc)
            logger.error(
                f"Failed to send email to {to}: {result.error_kind.value} - {exc}"
            )
            return result

        logger.info(f"Email sent to {to} (message id {message['Message-ID']})")
        return DeliveryResult(delivered=True, message_id=message["Message-ID"])
