"""
Outbound Mail Dispatcher

A single consumer task drains a bounded queue of rendered emails and sends
them over SMTP. The SMTP connection is opened lazily on the first message
and closed again after ``idle_timeout`` seconds without traffic.

Backpressure: ``enqueue`` waits at most ``enqueue_timeout`` seconds for a
free slot, then raises ``ServiceUnavailableError`` so the request fails
instead of stalling.
"""

import asyncio
import smtplib
import ssl
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Callable, Optional, Protocol

import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from recruitment.core.config import Settings
from recruitment.core.exceptions import ServiceUnavailableError
from recruitment.services.email_templates import EmailMessage

logger = structlog.get_logger(__name__)

SMTP_ERRORS = (smtplib.SMTPException, OSError)


class MailTransport(Protocol):
    """Blocking transport; only ever called from the dispatcher's worker thread."""

    @property
    def connected(self) -> bool: ...

    def connect(self) -> None: ...

    def send(self, message: EmailMessage) -> None: ...

    def close(self) -> None: ...


class Mailer(Protocol):
    async def enqueue(self, message: EmailMessage) -> None: ...


class SMTPTransport:
    """SMTP connection with STARTTLS (or implicit TLS on port 465) and login."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_email: str,
        from_name: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.from_name = from_name
        self.use_tls = use_tls
        self.timeout = timeout
        self._server: Optional[smtplib.SMTP] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SMTPTransport":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            from_email=settings.smtp_from_email,
            from_name=settings.smtp_from_name,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout_seconds,
        )

    @property
    def connected(self) -> bool:
        return self._server is not None

    def connect(self) -> None:
        context = ssl.create_default_context()
        if self.port == 465:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            if self.use_tls:
                server.starttls(context=context)
        if self.username and self.password:
            server.login(self.username, self.password)
        self._server = server

    def send(self, message: EmailMessage) -> None:
        mime = MIMEText(message.html_body, "html", "utf-8")
        mime["Subject"] = message.subject
        mime["From"] = formataddr((self.from_name, self.from_email))
        mime["To"] = ", ".join(message.to)
        self._server.sendmail(self.from_email, list(message.to), mime.as_string())

    def close(self) -> None:
        if self._server is None:
            return
        server, self._server = self._server, None
        try:
            server.quit()
        except SMTP_ERRORS as e:
            logger.debug("smtp_quit_failed", error=str(e))
            server.close()


class LogOnlyTransport:
    """Used when SMTP is not configured: records that a message would have been sent."""

    connected = True

    def connect(self) -> None:
        pass

    def send(self, message: EmailMessage) -> None:
        logger.warning("mail_not_configured", to=list(message.to), subject=message.subject)

    def close(self) -> None:
        pass


class MailDispatcher:
    """Bounded queue plus one worker task owning the transport."""

    def __init__(
        self,
        transport: MailTransport,
        queue_size: int = 100,
        idle_timeout: float = 30.0,
        enqueue_timeout: float = 2.0,
        retries: int = 3,
        retry_wait: Callable = wait_exponential(multiplier=1, min=1, max=10),
    ):
        self.transport = transport
        self.idle_timeout = idle_timeout
        self.enqueue_timeout = enqueue_timeout
        self.retries = max(retries, 1)
        self.retry_wait = retry_wait
        self._queue: asyncio.Queue[EmailMessage] = asyncio.Queue(maxsize=queue_size)
        self._worker: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "MailDispatcher":
        transport: MailTransport
        if settings.mail_enabled:
            transport = SMTPTransport.from_settings(settings)
        else:
            transport = LogOnlyTransport()
        return cls(
            transport,
            queue_size=settings.mail_queue_size,
            idle_timeout=settings.mail_idle_timeout_seconds,
            enqueue_timeout=settings.mail_enqueue_timeout_seconds,
            retries=settings.mail_send_retries,
        )

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if not self.running:
            self._worker = asyncio.create_task(self._run(), name="mail-dispatcher")
            logger.info("mail_dispatcher_started", queue_size=self._queue.maxsize)

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """Give queued mail a bounded chance to go out, then cancel the worker."""
        if self._worker is None:
            return
        # join() also waits for the message currently being sent
        try:
            await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
        except asyncio.TimeoutError:
            logger.warning("mail_dispatcher_drain_timeout", dropped=self._queue.qsize())
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        await asyncio.to_thread(self.transport.close)
        logger.info("mail_dispatcher_stopped")

    async def enqueue(self, message: EmailMessage) -> None:
        """
        Queue a message for delivery.

        Raises:
            ServiceUnavailableError: The dispatcher is not running or the
                queue stayed full for ``enqueue_timeout`` seconds.
        """
        if not self.running:
            raise ServiceUnavailableError("Email service is not running")
        try:
            await asyncio.wait_for(self._queue.put(message), timeout=self.enqueue_timeout)
        except asyncio.TimeoutError:
            logger.error("mail_queue_full", queue_size=self._queue.maxsize)
            raise ServiceUnavailableError("Email service is busy, please try again shortly")

    async def _run(self) -> None:
        while True:
            try:
                message = await asyncio.wait_for(self._queue.get(), timeout=self.idle_timeout)
            except asyncio.TimeoutError:
                if self.transport.connected:
                    logger.debug("smtp_idle_close")
                    await asyncio.to_thread(self.transport.close)
                continue

            try:
                await self._deliver(message)
                logger.info("mail_sent", to=list(message.to), subject=message.subject)
            except SMTP_ERRORS as e:
                logger.error("mail_send_failed", to=list(message.to), subject=message.subject, error=str(e))
            finally:
                self._queue.task_done()

    async def _deliver(self, message: EmailMessage) -> None:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(SMTP_ERRORS),
            stop=stop_after_attempt(self.retries),
            wait=self.retry_wait,
            reraise=True,
        ):
            with attempt:
                await asyncio.to_thread(self._send_blocking, message)

    def _send_blocking(self, message: EmailMessage) -> None:
        if not self.transport.connected:
            self.transport.connect()
        try:
            self.transport.send(message)
        except SMTP_ERRORS:
            # Force a fresh connection on the next attempt
            self.transport.close()
            raise
