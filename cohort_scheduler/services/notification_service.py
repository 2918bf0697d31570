# cohort_scheduler/services/notification_service.py
import asyncio
from typing import Awaitable, Callable, List, Optional

from cohort_scheduler.core.config import settings
from cohort_scheduler.core.logging import logger
from cohort_scheduler.schemas.scheduler import FanoutReport
from cohort_scheduler.schemas.session import MentorProfile, SuperMentorProfile, SwapNotice


async def _deliver(channel: str, recipient: str, send: Callable[..., Awaitable[bool]], *args) -> bool:
    try:
        return bool(await send(*args))
    except Exception as e:
        logger.error(f"{channel} notification to {recipient} failed: {str(e)}")
        return False


class NotificationFanout:
    """Sends the mentor-swap notices over email and WhatsApp.

    Every recipient/channel pair is attempted independently; failures are
    counted, never raised.
    """

    def __init__(
        self,
        email_sender,
        whatsapp_sender,
        delay_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.email_sender = email_sender
        self.whatsapp_sender = whatsapp_sender
        self.delay_seconds = settings.NOTIFICATION_DELAY_SECONDS if delay_seconds is None else delay_seconds
        self.sleep = sleep

    async def notify_mentor_swap(
        self,
        super_mentors: List[SuperMentorProfile],
        new_mentor: Optional[MentorProfile],
        notice: SwapNotice
    ) -> FanoutReport:
        report = FanoutReport(super_mentors=len(super_mentors))

        for index, super_mentor in enumerate(super_mentors):
            if index > 0 and self.delay_seconds > 0:
                await self.sleep(self.delay_seconds)
            name = super_mentor.name or "Super Mentor"
            if super_mentor.email:
                if await _deliver("Email", super_mentor.email,
                                  self.email_sender.send_swap_alert, super_mentor.email, name, notice):
                    report.super_mentor_emails_sent += 1
            if super_mentor.phone:
                if await _deliver("WhatsApp", super_mentor.phone,
                                  self.whatsapp_sender.send_swap_alert, super_mentor.phone, name, notice):
                    report.super_mentor_whatsapp_sent += 1

        if new_mentor:
            name = new_mentor.name or "Mentor"
            if new_mentor.email:
                report.new_mentor_email_sent = await _deliver(
                    "Email", new_mentor.email,
                    self.email_sender.send_class_assigned, new_mentor.email, name, notice
                )
            if new_mentor.phone:
                report.new_mentor_whatsapp_sent = await _deliver(
                    "WhatsApp", new_mentor.phone,
                    self.whatsapp_sender.send_class_assigned, new_mentor.phone, name, notice
                )

        logger.info(
            f"Swap notifications: {report.super_mentor_emails_sent}/{report.super_mentors} super-mentor emails, "
            f"{report.super_mentor_whatsapp_sent}/{report.super_mentors} super-mentor WhatsApp, "
            f"new mentor email={report.new_mentor_email_sent}, whatsapp={report.new_mentor_whatsapp_sent}"
        )
        return report
