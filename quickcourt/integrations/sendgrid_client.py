import sendgrid
from sendgrid.helpers.mail import Mail, Email, To, Content
from typing import Optional, Dict
from config.config import Config
from quickcourt.utils.logger import get_logger

logger = get_logger(__name__)


class SendGridClient:
    """Wrapper for SendGrid email operations"""

    def __init__(self, api_key: str = None, from_email: str = None):
        self.api_key = api_key if api_key is not None else Config.SENDGRID_API_KEY
        self.from_email = from_email or Config.MAIL_FROM

        if self.api_key:
            self.client = sendgrid.SendGridAPIClient(api_key=self.api_key)
        else:
            self.client = None
            logger.warning("SendGrid API key not configured")

    def send_email(self, to_email: str, subject: str, html_content: str,
                   plain_content: str = None) -> Optional[Dict]:
        """Send email via SendGrid"""
        if not self.client:
            logger.info(f"Email to {to_email} not sent (no SendGrid client): {subject}")
            return None

        message = Mail(
            from_email=Email(self.from_email, "QuickCourt"),
            to_emails=To(to_email),
            subject=subject,
            html_content=Content("text/html", html_content)
        )
        if plain_content:
            message.plain_text_content = Content("text/plain", plain_content)

        try:
            response = self.client.send(message)
        except Exception as e:
            # Mail delivery must not fail the request that triggered it
            logger.error(f"Error sending email to {to_email}: {str(e)}")
            return None

        return {
            'status_code': response.status_code,
            'message_id': response.headers.get('X-Message-Id')
        }

    def send_otp_email(self, to_email: str, name: str, otp: str) -> Optional[Dict]:
        """Send the email verification code"""
        html_content = f"""
        <div style="font-family:Arial,sans-serif;font-size:14px;color:#222;max-width:600px;margin:0 auto;padding:20px;">
            <h1 style="color:#2563eb;">QuickCourt</h1>
            <h2>Verify your email</h2>
            <p>Hi {name or 'there'},</p>
            <p>Your verification code is:</p>
            <p style="font-size:32px;letter-spacing:6px;font-weight:700;">{otp}</p>
            <p style="color:#6b7280;">This code will expire in {Config.OTP_EXPIRE_MINUTES} minutes.
            If you didn't request this, you can ignore this email.</p>
        </div>
        """
        plain_content = (
            f"Your QuickCourt verification code is {otp}. "
            f"This code will expire in {Config.OTP_EXPIRE_MINUTES} minutes."
        )
        return self.send_email(to_email, "Your QuickCourt verification code", html_content, plain_content)
