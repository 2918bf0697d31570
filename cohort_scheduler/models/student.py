# student.py
from sqlalchemy import Column, Integer, String
from .base import Base

class Student(Base):
    """One enrollment row per student; cohort membership is by type + number."""
    __tablename__ = "onboarding"

    id = Column(Integer, primary_key=True)
    name = Column("Name", String, nullable=True)
    email = Column("Email", String, nullable=True)
    phone = Column("Phone", String, nullable=True)
    cohort_type = Column("Cohort Type", String, nullable=True, index=True)
    cohort_number = Column("Cohort Number", String, nullable=True, index=True)

    def __repr__(self):
        return f"<Student(name={self.name}, cohort={self.cohort_type} {self.cohort_number})>"
