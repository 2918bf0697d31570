import asyncio
import traceback
from typing import List, Optional

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from pydantic import BaseModel, EmailStr, field_validator

from cohort_scheduler.core.config import get_email_settings
from cohort_scheduler.core.logging import logger
from cohort_scheduler.schemas.session import SwapNotice


class EmailConfig(BaseModel):
    """SMTP settings for outgoing notifications"""
    MAIL_USERNAME: str
    MAIL_PASSWORD: str
    MAIL_FROM: EmailStr
    MAIL_PORT: int = 465
    MAIL_SERVER: str = "smtp.gmail.com"
    MAIL_FROM_NAME: str = "Cohort Scheduler"
    MAIL_STARTTLS: bool = False
    MAIL_SSL_TLS: bool = True
    USE_CREDENTIALS: bool = True
    VALIDATE_CERTS: bool = True
    TIMEOUT: int = 10

    @field_validator('MAIL_PORT')
    @classmethod
    def validate_port(cls, v):
        if v not in [465, 587]:
            raise ValueError(f"Invalid SMTP port: {v}. Must be 465 (SSL) or 587 (STARTTLS)")
        return v

    @classmethod
    def from_settings(cls) -> Optional["EmailConfig"]:
        """Build from application settings; None when credentials are not configured."""
        conf = get_email_settings()
        missing = [
            env for key, env in (
                ("username", "EMAIL_USERNAME"),
                ("password", "EMAIL_PASSWORD"),
                ("from_email", "EMAIL_FROM"),
            )
            if not conf[key]
        ]
        if missing:
            logger.warning(f"Email notifications disabled. Missing: {', '.join(missing)}")
            return None

        use_starttls = conf["use_tls"] or conf["smtp_port"] == 587
        return cls(
            MAIL_USERNAME=conf["username"],
            MAIL_PASSWORD=conf["password"],
            MAIL_FROM=conf["from_email"],
            MAIL_PORT=conf["smtp_port"],
            MAIL_SERVER=conf["smtp_server"] or "smtp.gmail.com",
            MAIL_FROM_NAME=conf["from_name"],
            MAIL_STARTTLS=use_starttls,
            MAIL_SSL_TLS=not use_starttls,
            TIMEOUT=conf["timeout"],
        )


class EmailService:
    def __init__(self, config: Optional[EmailConfig] = None):
        """Create the FastMail client, or a disabled sender when SMTP is not configured."""
        config = config or EmailConfig.from_settings()
        self.fastmail: Optional[FastMail] = None
        if config is None:
            return

        self.conf = ConnectionConfig(
            MAIL_USERNAME=config.MAIL_USERNAME,
            MAIL_PASSWORD=config.MAIL_PASSWORD,
            MAIL_FROM=config.MAIL_FROM,
            MAIL_PORT=config.MAIL_PORT,
            MAIL_SERVER=config.MAIL_SERVER,
            MAIL_STARTTLS=config.MAIL_STARTTLS,
            MAIL_SSL_TLS=config.MAIL_SSL_TLS,
            USE_CREDENTIALS=config.USE_CREDENTIALS,
            VALIDATE_CERTS=config.VALIDATE_CERTS,
            MAIL_FROM_NAME=config.MAIL_FROM_NAME,
            TIMEOUT=config.TIMEOUT
        )
        self.fastmail = FastMail(self.conf)
        logger.info(f"Email sender configured for {config.MAIL_SERVER}:{config.MAIL_PORT}")

    @property
    def enabled(self) -> bool:
        return self.fastmail is not None

    async def send_email_with_retry(
        self,
        recipients: List[str],
        subject: str,
        body: str,
        subtype: MessageType = MessageType.html,
        max_retries: int = 3
    ) -> bool:
        """Send an email, retrying with exponential backoff. Never raises."""
        if not self.enabled:
            logger.warning(f"Email not sent (sender disabled): {subject}")
            return False
        if not recipients or not subject or not body:
            logger.warning("Invalid email parameters")
            return False

        message = MessageSchema(
            subject=subject,
            recipients=recipients,
            body=body,
            subtype=subtype
        )

        for attempt in range(max_retries):
            try:
                logger.info(f"Attempt {attempt + 1}: Sending email to {', '.join(recipients)}")
                await self.fastmail.send_message(message)
                logger.info(f"Email sent successfully to {', '.join(recipients)}")
                return True
            except Exception as e:
                logger.error(f"Attempt {attempt + 1}/{max_retries} failed: {type(e).__name__}: {str(e)}")
                logger.debug(f"Traceback:\n{traceback.format_exc()}")
                if attempt < max_retries - 1:
                    wait_time = 2 ** attempt
                    logger.info(f"Retrying in {wait_time} seconds...")
                    await asyncio.sleep(wait_time)

        logger.error(f"Failed to send email after {max_retries} attempts")
        return False

    async def send_swap_alert(self, email: str, super_mentor_name: str, notice: SwapNotice) -> bool:
        """Tell a super-mentor that a session changed hands"""
        subject = f"⚠️ Mentor Swap Alert: {notice.cohort_name} - {notice.subject_name}"
        body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
                <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                    <h2 style="color: #991b1b;">Mentor Swap Alert</h2>
                    <p>Hello {super_mentor_name},</p>
                    <p>A class has been reassigned to a different mentor.</p>
                    <div style="background-color: #fef2f2; padding: 15px; border-radius: 5px; margin: 20px 0;">
                        <p style="font-weight: bold;">Session Details</p>
                        <ul>
                            <li>Cohort: {notice.cohort_name}</li>
                            <li>Date: {notice.session_date}</li>
                            <li>Time: {notice.session_time}</li>
                            <li>Subject: {notice.subject_name}</li>
                        </ul>
                    </div>
                    <div style="background-color: #f0fdf4; padding: 15px; border-radius: 5px; margin: 20px 0;">
                        <p style="font-weight: bold;">Swap Details</p>
                        <ul>
                            <li>Original Mentor: {notice.original_mentor_name}</li>
                            <li>New Mentor: <strong>{notice.new_mentor_name}</strong></li>
                            <li>Swapped By: {notice.swapped_by}</li>
                            <li>Swapped At: {notice.swapped_at}</li>
                        </ul>
                    </div>
                    <hr style="border: 1px solid #edf2f7; margin: 20px 0;">
                    <p style="color: #6b7280; font-size: 12px;">This is an automated notification from the cohort scheduler.</p>
                </div>
            </body>
        </html>
        """
        return await self.send_email_with_retry([email], subject, body)

    async def send_class_assigned(self, email: str, mentor_name: str, notice: SwapNotice) -> bool:
        """Tell the incoming mentor about the session they now present"""
        subject = f"🔄 Class Assigned to You: {notice.cohort_name} - {notice.subject_name}"
        topic_row = f"<li>Topic: {notice.subject_topic}</li>" if notice.subject_topic else ""
        if notice.meeting_link:
            link_block = f'<p><a href="{notice.meeting_link}" style="color: #5b21b6;">Join the meeting</a></p>'
        else:
            link_block = "<p>The meeting link will be available on your dashboard.</p>"
        body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
                <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                    <h2 style="color: #5b21b6;">Class Assigned to You</h2>
                    <p>Hello {mentor_name},</p>
                    <p>A session previously assigned to {notice.original_mentor_name} has been swapped to you.</p>
                    <div style="background-color: #f5f3ff; padding: 15px; border-radius: 5px; margin: 20px 0;">
                        <p style="font-weight: bold;">Session Details</p>
                        <ul>
                            <li>Cohort: {notice.cohort_name}</li>
                            <li>Date: {notice.session_date}</li>
                            <li>Time: {notice.session_time}</li>
                            <li>Subject: {notice.subject_name}</li>
                            {topic_row}
                        </ul>
                    </div>
                    {link_block}
                    <p>Swapped by {notice.swapped_by} at {notice.swapped_at}.</p>
                    <hr style="border: 1px solid #edf2f7; margin: 20px 0;">
                    <p style="color: #6b7280; font-size: 12px;">This is an automated notification from the cohort scheduler.</p>
                </div>
            </body>
        </html>
        """
        return await self.send_email_with_retry([email], subject, body)
