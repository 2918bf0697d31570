# cohort_scheduler/core/dependencies.py
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_scheduler.core.database import get_db
from cohort_scheduler.services.email_service import EmailService
from cohort_scheduler.services.graph_client import GraphClient
from cohort_scheduler.services.notification_service import NotificationFanout
from cohort_scheduler.services.scheduler_service import BatchDriver
from cohort_scheduler.services.session_service import SessionService
from cohort_scheduler.services.whatsapp_service import WhatsAppService


# Service providers
@lru_cache()
def get_email_service() -> EmailService:
    """One SMTP client per process"""
    return EmailService()


@lru_cache()
def get_whatsapp_service() -> WhatsAppService:
    return WhatsAppService()


@lru_cache()
def get_graph_client() -> GraphClient:
    """One Graph client per process so the access token is reused across requests"""
    return GraphClient.from_settings()


def get_notification_fanout(
    email_service: EmailService = Depends(get_email_service),
    whatsapp_service: WhatsAppService = Depends(get_whatsapp_service)
) -> NotificationFanout:
    return NotificationFanout(email_service, whatsapp_service)


async def get_session_service(
    db: AsyncSession = Depends(get_db),
    fanout: NotificationFanout = Depends(get_notification_fanout)
) -> SessionService:
    """Provide SessionService instance"""
    return SessionService(db, fanout=fanout)


async def get_batch_driver(db: AsyncSession = Depends(get_db)) -> BatchDriver:
    return BatchDriver(db)
