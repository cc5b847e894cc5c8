from sqlalchemy import Column, Integer, String
from fleetgroups.core.database import Base

class ProjectSnapshot(Base):
    __tablename__ = "project_snapshots"
    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
