from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from fleetgroups.core.database import Base

class DeviceGroup(Base):
    __tablename__ = "device_groups"
    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    application_id = Column(Integer, ForeignKey('applications.id'), nullable=True)

    application = relationship("Application", back_populates="device_groups")
    # La membresía vive en devices.device_group_id; no hay tabla intermedia
    devices = relationship("Device", back_populates="device_group", order_by="Device.id")
    pipeline_stage = relationship("PipelineStageDeviceGroup", back_populates="device_group", uselist=False)
