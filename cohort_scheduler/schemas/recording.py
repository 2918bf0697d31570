# cohort_scheduler/schemas/recording.py
from typing import Optional

from .common import CamelModel


class Recording(CamelModel):
    """A file in the organizer's cloud-drive Recordings folder."""
    id: str
    name: str
    web_url: Optional[str] = None
    created_date_time: Optional[str] = None
