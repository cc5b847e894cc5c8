from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from fleetgroups.core.database import Base

class Team(Base):
    __tablename__ = "teams"
    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)

    applications = relationship("Application", back_populates="team")
