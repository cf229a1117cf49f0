"""
Outbound email for verification links and payment confirmations.

Sending is best-effort: every public coroutine reports success as a bool and
never raises, so a mail outage cannot fail a registration or a payment.
"""
import logging
from datetime import datetime
from decimal import Decimal
from functools import lru_cache
from typing import Optional, Union

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from ..config import Settings, settings

# Set up logging
logger = logging.getLogger(__name__)

APP_NAME = "Unified Patient Manager"

EMAIL_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .button { display: inline-block; padding: 12px 24px; background-color: #0070f3;
              color: white; text-decoration: none; border-radius: 5px; margin: 20px 0; }
    .success { color: #10b981; font-weight: bold; }
    .amount { font-size: 24px; font-weight: bold; margin: 20px 0; }
    .footer { margin-top: 40px; font-size: 12px; color: #666; }
"""


class MailSender:
    """
    Sends HTML email through fastapi-mail.

    The SMTP connection config is built on first use from the injected
    settings. When no mail server is configured sends are skipped and
    reported as not delivered.
    """

    def __init__(self, config: Settings):
        self.config = config
        self._client: Optional[FastMail] = None

    def _get_client(self) -> FastMail:
        if self._client is None:
            connection = ConnectionConfig(
                MAIL_USERNAME=self.config.mail_username or "",
                MAIL_PASSWORD=self.config.mail_password or "",
                MAIL_FROM=self.config.mail_from,
                MAIL_FROM_NAME=APP_NAME,
                MAIL_PORT=self.config.mail_port,
                MAIL_SERVER=self.config.mail_server,
                MAIL_STARTTLS=self.config.mail_starttls,
                MAIL_SSL_TLS=self.config.mail_ssl_tls,
                USE_CREDENTIALS=self.config.use_credentials,
                VALIDATE_CERTS=self.config.validate_certs,
            )
            self._client = FastMail(connection)
        return self._client

    async def send_email(self, to: str, subject: str, html: str) -> bool:
        """
        Send one HTML email.

        Args:
            to: Recipient address
            subject: Subject line
            html: HTML body

        Returns:
            bool: True if the message was handed to the SMTP server
        """
        if not self.config.mail_enabled:
            logger.info(f"Mail disabled; not sending '{subject}' to {to}")
            return False

        message = MessageSchema(
            subject=subject,
            recipients=[to],
            body=html,
            subtype=MessageType.html,
        )
        try:
            await self._get_client().send_message(message)
        except Exception as e:
            logger.error(f"Error sending email '{subject}' to {to}: {str(e)}")
            return False

        logger.info(f"Email '{subject}' sent to {to}")
        return True

    async def send_verification_email(self, email: str, token: str) -> bool:
        """
        Send the address verification link to a newly registered patient.

        Args:
            email: Patient's email address
            token: Verification token to embed in the link
        """
        verification_url = f"{self.config.frontend_url}/verify?token={token}"
        html = f"""
        <html>
            <head><style>{EMAIL_STYLE}</style></head>
            <body>
                <div class="container">
                    <h2>Verify Your Email Address</h2>
                    <p>Thank you for registering with {APP_NAME}. Please verify your email address by clicking the button below:</p>
                    <a href="{verification_url}" class="button">Verify Email Address</a>
                    <p>If the button doesn't work, copy and paste this link into your browser:</p>
                    <p>{verification_url}</p>
                    <div class="footer">
                        <p>If you didn't create an account, please ignore this email.</p>
                        <p>&copy; {datetime.now().year} {APP_NAME}. All rights reserved.</p>
                    </div>
                </div>
            </body>
        </html>
        """
        return await self.send_email(email, f"Verify Your Email - {APP_NAME}", html)

    async def send_payment_confirmation(self, email: str, amount: Union[Decimal, float], bill_id: str) -> bool:
        html = f"""
        <html>
            <head><style>{EMAIL_STYLE}</style></head>
            <body>
                <div class="container">
                    <h2 class="success">Payment Successful</h2>
                    <p>Your payment has been processed successfully.</p>
                    <div class="amount">Amount Paid: ${float(amount):.2f}</div>
                    <p><strong>Bill ID:</strong> {bill_id}</p>
                    <p><strong>Date:</strong> {datetime.now().strftime("%Y-%m-%d")}</p>
                    <div class="footer">
                        <p>Thank you for your payment.</p>
                        <p>&copy; {datetime.now().year} {APP_NAME}. All rights reserved.</p>
                    </div>
                </div>
            </body>
        </html>
        """
        return await self.send_email(email, f"Payment Confirmation - {APP_NAME}", html)


@lru_cache()
def get_mail_sender() -> MailSender:
    """Dependency returning the process-wide mail sender."""
    return MailSender(settings)
