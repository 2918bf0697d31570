# cohort_scheduler/services/directory_service.py
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from cohort_scheduler.core.logging import logger
from cohort_scheduler.models import Mentor, Student, SuperMentor
from cohort_scheduler.schemas.session import MentorProfile, SuperMentorProfile
from cohort_scheduler.utils.cohort import Cohort
from .base_service import BaseService


class DirectoryService(BaseService):
    """Read-only lookups against the mentor, enrollment and super-mentor directories."""

    async def get_mentor(self, mentor_id: Optional[int]) -> Optional[MentorProfile]:
        if mentor_id is None:
            return None
        result = await self.db.execute(select(Mentor).where(Mentor.mentor_id == mentor_id))
        mentor = result.scalar_one_or_none()
        if not mentor:
            return None
        return MentorProfile.model_validate(mentor)

    async def get_student_emails(self, cohort: Cohort) -> List[str]:
        """Emails of everyone enrolled in the cohort; entries without an '@' are dropped."""
        result = await self.db.execute(
            select(Student.email).where(
                Student.cohort_type == cohort.type,
                Student.cohort_number == cohort.number
            )
        )
        return [email for email in result.scalars().all() if email and "@" in email]

    async def list_super_mentors(self) -> List[SuperMentorProfile]:
        try:
            result = await self.db.execute(select(SuperMentor).order_by(SuperMentor.id))
        except SQLAlchemyError as e:
            logger.error(f"Failed to load super mentors: {str(e)}")
            return []
        return [
            SuperMentorProfile(name=row.name, email=row.email, phone=row.phone_num)
            for row in result.scalars().all()
        ]


class StudentEmailCache:
    """Per-run memo of cohort student emails keyed by "{type}_{number}"."""

    def __init__(self, directory: DirectoryService):
        self.directory = directory
        self._emails: Dict[str, List[str]] = {}

    async def get(self, cohort: Cohort) -> List[str]:
        key = cohort.cache_key
        if key not in self._emails:
            self._emails[key] = await self.directory.get_student_emails(cohort)
        return self._emails[key]
