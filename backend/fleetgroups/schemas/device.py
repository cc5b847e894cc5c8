from pydantic import BaseModel
from typing import Optional

class DeviceSummary(BaseModel):
    id: int
    name: Optional[str] = None
    application_id: Optional[int] = None
    target_snapshot_id: Optional[int] = None
    mode: Optional[str] = None

    class Config:
        from_attributes = True
