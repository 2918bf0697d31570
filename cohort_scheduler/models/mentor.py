# mentor.py
from sqlalchemy import Column, Integer, String
from .base import Base

class Mentor(Base):
    __tablename__ = "Mentor Details"

    mentor_id = Column(Integer, primary_key=True, index=True)
    name = Column("Name", String, nullable=True)
    email = Column("Email address", String, nullable=True)
    phone = Column("Mobile number", String, nullable=True)

    def __repr__(self):
        return f"<Mentor(mentor_id={self.mentor_id}, name={self.name})>"
