from pydantic import BaseModel
from typing import Optional, List, Union
from fleetgroups.schemas.device import DeviceSummary

# int = ID numérico, str = hashid
DeviceReference = Union[int, str]

class GroupBase(BaseModel):
    name: str
    description: Optional[str] = None

class GroupCreate(GroupBase):
    application_id: Optional[int] = None

class GroupUpdate(BaseModel):
    # Actualización parcial: solo se aplican los campos enviados
    name: Optional[str] = None
    description: Optional[str] = None

class GroupMembershipUpdate(BaseModel):
    add_devices: Optional[List[DeviceReference]] = None
    remove_devices: Optional[List[DeviceReference]] = None
    set_devices: Optional[List[DeviceReference]] = None

class GroupMembershipResult(BaseModel):
    added: List[int] = []
    removed: List[int] = []

class Group(GroupBase):
    id: int
    application_id: Optional[int] = None
    devices: List[DeviceSummary] = []

    class Config:
        from_attributes = True
