from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from fleetgroups.core.database import Base

class Application(Base):
    __tablename__ = "applications"
    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    team_id = Column(Integer, ForeignKey('teams.id'), nullable=True)

    team = relationship("Team", back_populates="applications")
    device_groups = relationship("DeviceGroup", back_populates="application")
