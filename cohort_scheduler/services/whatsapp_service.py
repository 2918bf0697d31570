from typing import List, Optional

import aiohttp
from pydantic import BaseModel, Field

from cohort_scheduler.core.config import get_whatsapp_settings
from cohort_scheduler.core.logging import logger
from cohort_scheduler.schemas.session import SwapNotice
from cohort_scheduler.utils.phone import format_phone_for_whatsapp

WHATSAPP_API_URL = "https://graph.facebook.com/v19.0/{phone_number_id}/messages"


class WhatsAppConfig(BaseModel):
    """WhatsApp Cloud API credentials and template names"""
    phone_number_id: Optional[str] = None
    access_token: Optional[str] = None
    timeout: float = Field(15.0, description="Seconds before a send is abandoned")
    swap_alert_template: str = "mentor_swap_alert"
    new_mentor_template: str = "class_assigned_mentor"
    language_code: str = "en"

    @property
    def enabled(self) -> bool:
        return bool(self.phone_number_id and self.access_token)

    @classmethod
    def from_settings(cls) -> "WhatsAppConfig":
        conf = get_whatsapp_settings()
        return cls(
            phone_number_id=conf["phone_number_id"],
            access_token=conf["access_token"],
            timeout=conf["timeout"],
            swap_alert_template=conf["templates"]["swap_alert"],
            new_mentor_template=conf["templates"]["new_mentor"],
        )


class WhatsAppTemplateMessage(BaseModel):
    to: str
    template: str
    parameters: List[str]

    def to_payload(self, language_code: str) -> dict:
        return {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": self.to,
            "type": "template",
            "template": {
                "name": self.template,
                "language": {"code": language_code},
                "components": [{
                    "type": "body",
                    "parameters": [{"type": "text", "text": value} for value in self.parameters],
                }],
            },
        }


class WhatsAppService:
    def __init__(self, config: Optional[WhatsAppConfig] = None):
        self.config = config or WhatsAppConfig.from_settings()
        if not self.config.enabled:
            logger.warning("WhatsApp notifications disabled: phone number id or access token missing")
        self.headers = {
            'Authorization': f'Bearer {self.config.access_token}',
            'Content-Type': 'application/json',
        }

    async def send_template(self, message: WhatsAppTemplateMessage) -> bool:
        """Send one template message. Returns False on any failure, never raises."""
        if not self.config.enabled:
            return False
        url = WHATSAPP_API_URL.format(phone_number_id=self.config.phone_number_id)
        try:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    url,
                    headers=self.headers,
                    json=message.to_payload(self.config.language_code)
                ) as response:
                    if response.status < 200 or response.status >= 300:
                        error_msg = await response.text()
                        logger.error(f"Failed to send WhatsApp {message.template} to {message.to}: {error_msg}")
                        return False
                    logger.info(f"WhatsApp {message.template} sent to {message.to}")
                    return True
        except Exception as e:
            logger.error(f"Error sending WhatsApp message: {str(e)}")
            return False

    async def send_swap_alert(self, phone: Optional[str], super_mentor_name: str, notice: SwapNotice) -> bool:
        to = format_phone_for_whatsapp(phone)
        if not to:
            logger.warning(f"Skipping WhatsApp swap alert for {super_mentor_name}: unusable phone number")
            return False
        return await self.send_template(WhatsAppTemplateMessage(
            to=to,
            template=self.config.swap_alert_template,
            parameters=[
                super_mentor_name,
                notice.cohort_name,
                notice.session_date,
                notice.session_time,
                notice.subject_name,
                notice.original_mentor_name,
                notice.new_mentor_name,
            ],
        ))

    async def send_class_assigned(self, phone: Optional[str], mentor_name: str, notice: SwapNotice) -> bool:
        to = format_phone_for_whatsapp(phone)
        if not to:
            logger.warning(f"Skipping WhatsApp assignment notice for {mentor_name}: unusable phone number")
            return False
        return await self.send_template(WhatsAppTemplateMessage(
            to=to,
            template=self.config.new_mentor_template,
            parameters=[
                mentor_name,
                notice.cohort_name,
                notice.session_date,
                notice.session_time,
                notice.subject_name,
                notice.meeting_link or "Check Dashboard",
            ],
        ))
