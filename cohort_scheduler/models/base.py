# base.py
from sqlalchemy.orm import declarative_base

# Directory tables (mentors, enrollment, super-mentors). Cohort schedule
# tables live in their own metadata, see schedule.py.
Base = declarative_base()
