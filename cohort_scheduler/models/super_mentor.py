# super_mentor.py
from sqlalchemy import Column, Integer, String
from .base import Base

class SuperMentor(Base):
    __tablename__ = "supermentor_details"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone_num = Column(String, nullable=True)

    def __repr__(self):
        return f"<SuperMentor(name={self.name})>"
