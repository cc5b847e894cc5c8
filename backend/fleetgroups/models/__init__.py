# Importa todos los modelos para que SQLAlchemy resuelva las relaciones por nombre
from fleetgroups.models.team import Team
from fleetgroups.models.application import Application
from fleetgroups.models.snapshot import ProjectSnapshot
from fleetgroups.models.group import DeviceGroup
from fleetgroups.models.device import Device
from fleetgroups.models.pipeline import PipelineStageDeviceGroup

__all__ = [
    "Team",
    "Application",
    "ProjectSnapshot",
    "DeviceGroup",
    "Device",
    "PipelineStageDeviceGroup",
]
