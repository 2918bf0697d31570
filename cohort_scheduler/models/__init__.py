from .base import Base
from .mentor import Mentor
from .student import Student
from .super_mentor import SuperMentor
from .schedule import schedule_table, schedule_metadata, is_schedule_table_name

__all__ = [
    'Base',
    'Mentor',
    'Student',
    'SuperMentor',
    'schedule_table',
    'schedule_metadata',
    'is_schedule_table_name',
]
