"""
Email Service for NoteNexus
===========================
Handles outgoing mail:
- OTP codes for email verification on signup
- Contact form messages to the site owner

Sends over SMTP with STARTTLS. Every send returns a bool; callers decide
whether a failed delivery is fatal.
"""

import html

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from notenexus.core.config import settings
from notenexus.core.logging_config import logger


class EmailService:
    """Async email service using SMTP"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.contact_to = settings.CONTACT_TO_EMAIL or settings.EMAIL_FROM

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        return bool(self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        reply_to: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning("[Email] Email service not configured, skipping email send")
            return False

        message = MIMEMultipart("alternative")
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject
        if reply_to:
            message["Reply-To"] = reply_to

        # Plain text first so clients prefer the HTML part
        if text_content:
            message.attach(MIMEText(text_content, "plain"))
        message.attach(MIMEText(html_content, "html"))

        try:
            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

        logger.info(f"[Email/SMTP] Successfully sent email to {to_email}: {subject}")
        return True

    async def send_otp_email(self, to_email: str, code: str, ttl_minutes: int) -> bool:
        """Send the signup verification code"""
        subject = f"Your {settings.APP_NAME} verification code"

        html_content = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <style>
                body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }}
                .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
                .header {{ background: #4f46e5; color: white; padding: 24px; text-align: center; border-radius: 10px 10px 0 0; }}
                .content {{ background: #f9fafb; padding: 30px; border-radius: 0 0 10px 10px; }}
                .code {{ font-size: 32px; letter-spacing: 8px; font-weight: 700; text-align: center; margin: 24px 0; }}
                .footer {{ text-align: center; margin-top: 30px; font-size: 12px; color: #6b7280; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header">
                    <h1>{settings.APP_NAME}</h1>
                </div>
                <div class="content">
                    <p>Use this code to verify your email address:</p>
                    <div class="code">{code}</div>
                    <p>The code expires in {ttl_minutes} minutes. If you did not request it, you can ignore this email.</p>
                </div>
                <div class="footer">
                    <p>&copy; {settings.APP_NAME}</p>
                </div>
            </div>
        </body>
        </html>
        """

        text_content = f"""
Your {settings.APP_NAME} verification code is {code}

It expires in {ttl_minutes} minutes. If you did not request it, you can ignore this email.
        """

        return await self.send_email(to_email, subject, html_content, text_content)

    async def send_contact_message(self, name: str, email: str, message: str) -> bool:
        """Forward a contact form submission to the site owner"""
        subject = f"[{settings.APP_NAME}] Contact form: {name}"

        html_content = f"""
        <html>
        <body>
            <h2>New contact form message</h2>
            <p><strong>Name:</strong> {html.escape(name)}</p>
            <p><strong>Email:</strong> {html.escape(email)}</p>
            <p style="white-space: pre-wrap;">{html.escape(message)}</p>
        </body>
        </html>
        """

        text_content = f"Name: {name}\nEmail: {email}\n\n{message}\n"

        return await self.send_email(
            self.contact_to, subject, html_content, text_content, reply_to=email
        )


# Singleton instance
email_service = EmailService()


def get_email_service() -> EmailService:
    """Dependency hook; tests override it with a mock"""
    return email_service
