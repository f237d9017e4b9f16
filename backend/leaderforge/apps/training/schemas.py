from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from .models import BoldActionStatus, StandupStatus


class ProgressEntry(BaseModel):
    videoCompleted: bool = False
    worksheetCompleted: bool = False
    lastUpdated: Optional[datetime] = None

    @property
    def completed(self) -> bool:
        return self.videoCompleted and self.worksheetCompleted


class ProgressMap(BaseModel):
    entries: Dict[str, ProgressEntry] = Field(default_factory=dict)


class BoldActionCreate(BaseModel):
    action: str = Field(min_length=1)
    timeframe: str = Field(min_length=1)
    training_id: Optional[str] = None


class BoldActionComplete(BaseModel):
    actual_timeframe: str = ""
    reflection_notes: str = ""


class BoldActionRead(BaseModel):
    id: str
    user_id: str
    training_id: Optional[str] = None
    action: str
    status: BoldActionStatus
    timeframe: Optional[str] = None
    actual_timeframe: Optional[str] = None
    reflection_notes: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StandupCreate(BaseModel):
    member_id: str
    scheduled_for: datetime


class StandupComplete(BaseModel):
    notes: Optional[str] = None


class StandupRead(BaseModel):
    id: str
    user_id: str
    supervisor_id: str
    status: StandupStatus
    scheduled_for: datetime
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True
