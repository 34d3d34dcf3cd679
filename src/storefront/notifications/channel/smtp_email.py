"""SMTP email adapter built on aiosmtplib.

``send`` keeps the synchronous ``EmailPort`` contract by running one
connect, send, quit round-trip on a private event loop. It must be called
from a thread without a running loop, which is how the API routes that
notify customers are declared.
"""

import asyncio
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid

import aiosmtplib
import structlog

from storefront.notifications.channel.email_port import EmailPort

logger = structlog.get_logger(__name__)


class SmtpEmailAdapter(EmailPort):
    def __init__(
        self,
        host: str,
        port: int,
        from_email: str,
        user: str | None = None,
        password: str | None = None,
        timeout: float = 10,
        use_ssl: bool = False,
        start_tls: bool = True,
    ):
        self.host = host
        self.port = port
        self.from_email = from_email
        self.user = user
        self.password = password
        self.timeout = timeout
        self.use_ssl = use_ssl
        self.start_tls = start_tls and not use_ssl

    @staticmethod
    def _domain_of(address: str) -> str:
        return address.rsplit("@", 1)[-1] if "@" in address else "localhost"

    def _build_message(self, to: str, subject: str, body: str, html_body: str | None) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to
        msg["Date"] = formatdate(localtime=True)
        msg["Message-ID"] = make_msgid(domain=self._domain_of(self.from_email))
        msg.attach(MIMEText(body, "plain", "utf-8"))
        if html_body:
            msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    async def _deliver(self, msg: MIMEMultipart, to: str) -> None:
        smtp = aiosmtplib.SMTP(
            hostname=self.host,
            port=self.port,
            use_tls=self.use_ssl,
            start_tls=self.start_tls,
            timeout=self.timeout,
        )
        await smtp.connect()
        try:
            if self.user and self.password:
                await smtp.login(self.user, self.password)
            await smtp.send_message(msg, sender=self.from_email, recipients=[to])
        finally:
            try:
                await smtp.quit()
            except aiosmtplib.SMTPException:
                smtp.close()

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> dict:
        msg = self._build_message(to, subject, body, html_body)
        try:
            asyncio.run(self._deliver(msg, to))
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("SMTP delivery failed", to=to, subject=subject, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}

        logger.info("SMTP delivery succeeded", to=to, message_id=msg["Message-ID"])
        return {"message_id": msg["Message-ID"], "status": "sent"}
