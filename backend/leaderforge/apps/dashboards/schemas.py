from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class CompletionStatus(str, Enum):
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    BEHIND = "behind"


class SubmissionItem(BaseModel):
    completed: bool
    timestamp: Optional[datetime] = None


class WeekRecord(BaseModel):
    week_index: int
    week_start: datetime
    week_end: datetime
    trainings: List[SubmissionItem] = Field(default_factory=list)
    bold_actions: List[SubmissionItem] = Field(default_factory=list)
    standups: List[SubmissionItem] = Field(default_factory=list)

    @property
    def training_completed(self) -> bool:
        return any(item.completed for item in self.trainings)

    @property
    def bold_action_completed(self) -> bool:
        return any(item.completed for item in self.bold_actions)

    @property
    def standup_completed(self) -> bool:
        return any(item.completed for item in self.standups)


class FourWeekTotals(BaseModel):
    total_trainings: int = 0
    total_bold_actions: int = 0
    total_standups: int = 0


class WeeklyCompletion(BaseModel):
    training: bool = False
    bold_action: bool = False
    standup: bool = False


class MemberProgress(BaseModel):
    member_id: str
    name: str
    weekly: WeeklyCompletion
    weeks: List[WeekRecord]
    four_week: FourWeekTotals
    data_unavailable: bool = False


class CompletionRatio(BaseModel):
    completed: int
    total: int
    percentage: float
    status: CompletionStatus


class CategoryRatios(BaseModel):
    trainings: CompletionRatio
    bold_actions: CompletionRatio
    standups: CompletionRatio


class TeamMetrics(BaseModel):
    supervisor_id: str
    supervisor_name: str
    team_size: int
    members: List[MemberProgress]
    weekly: CategoryRatios
    four_week: CategoryRatios


class WeeklyMetrics(BaseModel):
    company_name: str
    generated_at: datetime
    week_start: datetime
    week_end: datetime
    totals: CategoryRatios
    teams: List[TeamMetrics] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# DIRECTORY VIEWS
# ---------------------------------------------------------------------------


class LatestBoldAction(BaseModel):
    action: str
    status: str
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class LatestTraining(BaseModel):
    training_id: str
    title: str
    completed_at: Optional[datetime] = None


class DirectoryEntry(BaseModel):
    user_id: str
    name: str
    role: str
    supervisor_id: Optional[str] = None
    latest_bold_action: Optional[LatestBoldAction] = None
    latest_training: Optional[LatestTraining] = None
