"""
Notification Dispatcher module for the watchdom system.

Maps detection events (available, target reached, grace period) to an
email and hands it to an ordered list of backends. The first backend
that reports success wins; failures fall through to the next one.

Delivery is best-effort: notify() never raises, and a missing or
partial email configuration turns every event into a no-op.
"""

import asyncio
import contextlib
import os
import shutil
import smtplib
import ssl
import tempfile
from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from email.mime.text import MIMEText
from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

import httpx

from .config import NotifyConfig
from .enums import EventKind, LogLevel
from .exceptions import NotificationError
from .i18n import get_message
from .models import NotificationEvent

if TYPE_CHECKING:
    from .audit_logger import AuditLogger


_EVENT_KEYS = {
    EventKind.SUCCESS: "notify.success",
    EventKind.TARGET_REACHED: "notify.target_reached",
    EventKind.GRACE_ENTERED: "notify.grace_entered",
}


@dataclass
class EmailMessage:
    """Rendered notification ready for a backend."""

    event: NotificationEvent
    subject: str
    body: str
    timestamp: str


def render_message(event: NotificationEvent, language: str = "en") -> EmailMessage:
    """Build the subject and body for an event."""
    prefix = _EVENT_KEYS[event.kind]
    subject = get_message(f"{prefix}.subject", language, domain=event.domain)
    body = "{}\n\n{}".format(
        get_message(f"{prefix}.body", language, domain=event.domain),
        get_message("notify.details", language, details=event.details),
    )
    return EmailMessage(
        event=event,
        subject=subject,
        body=body,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@runtime_checkable
class NotificationBackend(Protocol):
    """Protocol defining the interface for delivery backends."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the backend can be tried at all (binary present, URL set)."""
        ...

    @abstractmethod
    async def send(self, message: EmailMessage) -> bool:
        """
        Deliver a message.

        Returns:
            True if delivery was successful, False otherwise
        """
        ...

    @abstractmethod
    def get_name(self) -> str:
        ...


class SmtpBackend:
    """Direct SMTP delivery with STARTTLS and login."""

    def __init__(self, config: NotifyConfig) -> None:
        self._config = config

    def is_available(self) -> bool:
        return self._config.is_complete()

    async def send(self, message: EmailMessage) -> bool:
        """Send via SMTP in an executor to avoid blocking the loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._send_sync, message)

    def _send_sync(self, message: EmailMessage) -> bool:
        msg = MIMEText(message.body, "plain", "utf-8")
        msg["From"] = self._config.sender
        msg["To"] = self._config.recipient
        msg["Subject"] = message.subject

        context = ssl.create_default_context()
        try:
            with smtplib.SMTP(self._config.smtp_host, self._config.port, timeout=30) as server:
                server.starttls(context=context)
                server.login(self._config.username, self._config.password)
                server.sendmail(
                    self._config.sender,
                    [self._config.recipient],
                    msg.as_string(),
                )
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(
                "smtp_failed",
                f"SMTP delivery failed: {e}",
                {"host": self._config.smtp_host, "port": self._config.port},
            ) from e
        return True

    def get_name(self) -> str:
        return "smtp"


class _CommandBackend:
    """Shared plumbing for backends that pipe a message into a local mailer."""

    required: tuple[str, ...] = ()

    def __init__(self, config: NotifyConfig, timeout: float = 30.0) -> None:
        self._config = config
        self._timeout = timeout

    def is_available(self) -> bool:
        return all(shutil.which(name) for name in self.required)

    async def _pipe(self, args: list[str], data: str, env: Optional[dict] = None) -> bool:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
            env=env,
        )
        try:
            await asyncio.wait_for(
                process.communicate(data.encode("utf-8")), timeout=self._timeout
            )
        except asyncio.TimeoutError as e:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            raise NotificationError(
                "command_timeout",
                f"{args[0]} did not finish within {self._timeout}s",
                {"command": args[0]},
            ) from e
        return process.returncode == 0


class MuttBackend(_CommandBackend):
    """mutt with a throwaway config file so credentials stay off the command line."""

    required = ("mutt",)

    async def send(self, message: EmailMessage) -> bool:
        c = self._config
        fd, path = tempfile.mkstemp(prefix=".watchdom_mutt_")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(f'set smtp_url="smtp://{c.username}:{c.password}@{c.smtp_host}:{c.smtp_port}/"\n')
                f.write(f'set from="{c.sender}"\n')
                f.write('set realname="watchdom"\n')
            return await self._pipe(
                ["mutt", "-F", path, "-s", message.subject, c.recipient],
                message.body,
            )
        finally:
            os.unlink(path)

    def get_name(self) -> str:
        return "mutt"


class MailBackend(_CommandBackend):
    """mail(1) relaying through msmtp; credentials go through the environment."""

    required = ("msmtp", "mail")

    async def send(self, message: EmailMessage) -> bool:
        c = self._config
        env = dict(os.environ)
        env.update({
            "MSMTP_HOST": c.smtp_host,
            "MSMTP_PORT": c.smtp_port,
            "MSMTP_USER": c.username,
            "MSMTP_PASS": c.password,
        })
        return await self._pipe(
            ["mail", "-s", message.subject, c.recipient],
            message.body,
            env=env,
        )

    def get_name(self) -> str:
        return "mail"


class SendmailBackend(_CommandBackend):
    """sendmail with headers written on stdin."""

    required = ("sendmail",)

    async def send(self, message: EmailMessage) -> bool:
        c = self._config
        data = (
            f"To: {c.recipient}\n"
            f"From: {c.sender}\n"
            f"Subject: {message.subject}\n\n"
            f"{message.body}\n"
        )
        return await self._pipe(["sendmail", c.recipient], data)

    def get_name(self) -> str:
        return "sendmail"


class WebhookBackend:
    """Generic webhook delivery using HTTP POST."""

    def __init__(self, url: Optional[str], timeout: float = 30.0) -> None:
        self._url = url
        self._timeout = timeout

    def is_available(self) -> bool:
        return bool(self._url)

    async def send(self, message: EmailMessage) -> bool:
        data = {
            "event": message.event.kind.value,
            "domain": message.event.domain,
            "subject": message.subject,
            "body": message.body,
            "timestamp": message.timestamp,
        }
        async with httpx.AsyncClient() as client:
            try:
                response = await client.post(self._url, json=data, timeout=self._timeout)
            except httpx.HTTPError as e:
                raise NotificationError(
                    "webhook_failed",
                    f"Webhook request failed: {e}",
                ) from e
        return 200 <= response.status_code < 300

    def get_name(self) -> str:
        return "webhook"


def default_backends(config: NotifyConfig) -> list[NotificationBackend]:
    """Backends in priority order."""
    backends: list[NotificationBackend] = [
        SmtpBackend(config),
        MuttBackend(config),
        MailBackend(config),
        SendmailBackend(config),
    ]
    if config.webhook_url:
        backends.append(WebhookBackend(config.webhook_url))
    return backends


class NotificationDispatcher:
    """
    Routes events to the first backend that delivers them.

    Args:
        config: Email settings; events are dropped unless complete
        backends: Ordered backends, defaults to default_backends(config)
        language: Message language
        logger: Optional AuditLogger
    """

    def __init__(
        self,
        config: NotifyConfig,
        backends: Optional[list[NotificationBackend]] = None,
        language: str = "en",
        logger: Optional["AuditLogger"] = None,
    ) -> None:
        self._config = config
        self._backends = backends if backends is not None else default_backends(config)
        self._language = language
        self._logger = logger

    @property
    def backends(self) -> list[NotificationBackend]:
        return list(self._backends)

    @property
    def enabled(self) -> bool:
        return self._config.is_complete()

    async def notify(self, event: NotificationEvent) -> bool:
        """
        Deliver an event through the first working backend.

        Returns:
            True if some backend delivered it, False otherwise
        """
        if not self.enabled:
            self._log(LogLevel.TRACE, "Notifications not configured, skipping", {
                "event": event.kind.value,
            })
            return False

        message = render_message(event, self._language)
        failures = []

        for backend in self._backends:
            name = backend.get_name()
            if not backend.is_available():
                self._log(LogLevel.TRACE, f"Backend '{name}' unavailable", {})
                continue
            try:
                if await backend.send(message):
                    self._log(LogLevel.DEBUG, f"Email notification sent: {message.subject}", {
                        "backend": name,
                    })
                    return True
                failures.append({"backend": name, "error": "backend returned failure"})
            except Exception as e:
                failures.append({"backend": name, "error": str(e)})

        self._log(LogLevel.WARN, "Failed to send email notification", {
            "event": event.kind.value,
            "domain": event.domain,
            "attempts": failures,
        })
        return False

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "NotificationDispatcher", message, data)
