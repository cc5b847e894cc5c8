from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from fleetgroups.core.database import Base

class Device(Base):
    __tablename__ = "devices"
    id = Column(Integer, primary_key=True)
    name = Column(String(100))
    device_group_id = Column(Integer, ForeignKey('device_groups.id'), nullable=True, index=True)
    application_id = Column(Integer, ForeignKey('applications.id'), nullable=True)
    team_id = Column(Integer, ForeignKey('teams.id'), nullable=True)

    # Estado de despliegue, solo lo usa el notificador
    target_snapshot_id = Column(Integer, ForeignKey('project_snapshots.id'), nullable=True)
    settings_hash = Column(String(128))
    mode = Column(String(32))

    device_group = relationship("DeviceGroup", back_populates="devices")
