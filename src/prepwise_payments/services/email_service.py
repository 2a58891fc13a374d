"""Email service — delivers payment codes and confirmations via async SMTP."""

from __future__ import annotations

import html
import logging
from email.message import EmailMessage

import aiosmtplib

from prepwise_payments.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Sends transactional emails using the configured SMTP server.

    Delivery errors (``aiosmtplib.SMTPException``, ``OSError``) propagate to
    the caller; deciding whether a failure matters is the caller's job.
    """

    async def send_payment_code(
        self,
        to_email: str,
        code: str,
        training_title: str,
        amount: str,
        ttl_seconds: int,
    ) -> None:
        """Send the one-time payment verification code.

        Parameters
        ----------
        to_email:
            Recipient email address.
        code:
            The plain one-time code; never logged.
        training_title, amount:
            Shown to the participant so they know what they confirm.
        ttl_seconds:
            Validity window, rendered in minutes.
        """
        minutes = max(1, ttl_seconds // 60)
        subject = f"{settings.app_name} — Payment Verification Code"
        body = (
            "Hello,\n\n"
            f"Your verification code is: {code}\n\n"
            "Payment details:\n"
            f"  Training: {training_title}\n"
            f"  Amount:   {amount}\n\n"
            f"This code expires in {minutes} minutes. "
            "Never share it with anyone.\n\n"
            "If you did not try to book this training, you can ignore this email.\n\n"
            f"The {settings.app_name} Team"
        )
        html_body = (
            "<p>Your verification code is:</p>"
            f"<p style=\"font-size:28px;font-weight:bold;letter-spacing:6px\">{code}</p>"
            f"<p><strong>Training:</strong> {html.escape(training_title)}<br>"
            f"<strong>Amount:</strong> {html.escape(amount)}</p>"
            f"<p>This code expires in {minutes} minutes.</p>"
        )
        logger.info("Sending payment code to %s", to_email)
        await self._send(to_email, subject, body, html_body)
        logger.info("Payment code sent to %s", to_email)

    async def send_payment_confirmation(
        self,
        to_email: str,
        participant_name: str,
        training_title: str,
        confirmation_code: str,
        payment_method: str,
        training_link: str | None,
    ) -> None:
        """Send the "payment confirmed" receipt after a registration is final."""
        subject = f"Payment Confirmed — {training_title}"
        link_line = (
            f"Join the session here: {training_link}\n\n"
            if training_link
            else "The trainer will share the session link before the start date.\n\n"
        )
        body = (
            f"Hello {participant_name},\n\n"
            f"Your payment for {training_title} has been confirmed and your "
            "registration is complete.\n\n"
            f"Confirmation code: {confirmation_code}\n"
            f"Payment method:    {payment_method}\n\n"
            f"{link_line}"
            "Best regards,\n"
            f"The {settings.app_name} Team"
        )
        logger.info("Sending payment confirmation to %s", to_email)
        await self._send(to_email, subject, body)
        logger.info("Payment confirmation sent to %s", to_email)

    async def _send(
        self, to_email: str, subject: str, body: str, html_body: str | None = None
    ) -> None:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = settings.email_from
        msg["To"] = to_email
        msg.set_content(body)
        if html_body:
            msg.add_alternative(html_body, subtype="html")

        await aiosmtplib.send(
            msg,
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username or None,
            password=settings.smtp_password or None,
            start_tls=settings.smtp_start_tls,
            timeout=settings.smtp_timeout_seconds,
        )
