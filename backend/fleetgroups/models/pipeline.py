from sqlalchemy import Column, Integer, ForeignKey
from sqlalchemy.orm import relationship
from fleetgroups.core.database import Base

class PipelineStageDeviceGroup(Base):
    """
    Asocia un grupo a una etapa de pipeline y al snapshot que esa etapa despliega.
    Este servicio solo lo lee.
    """
    __tablename__ = "pipeline_stage_device_groups"
    pipeline_stage_id = Column(Integer, primary_key=True)
    device_group_id = Column(Integer, ForeignKey('device_groups.id'), primary_key=True)
    target_snapshot_id = Column(Integer, ForeignKey('project_snapshots.id'), nullable=True)

    device_group = relationship("DeviceGroup", back_populates="pipeline_stage")
    target_snapshot = relationship("ProjectSnapshot")
