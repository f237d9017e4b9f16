# backend/leaderforge/apps/dashboards/services.py

"""
Progress aggregation for the supervisor and executive dashboards.

For every supervisor of a company the team members are fetched concurrently
and, per member, each of the four reported calendar weeks is checked for a
completed training (video + worksheet), a completed Bold Action and a
completed standup. Member results roll up into per-team ratios and then into
company totals.

Rules that decide which week an item lands in:
- Trainings count only when both flags are set, in the week of `lastUpdated`.
- Bold Actions: completed ones in the week of `completed_at`, active ones
  (reported as not completed) in the week they were created.
- Standups: only those held by the supervisor being reported on. Completed
  ones land in the week of `completed_at`, scheduled ones in the week they
  are scheduled for.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from leaderforge.security import SessionContext

from . import schemas
from .cache import ResultCache, metrics_cache, metrics_cache_key
from .store import BoldActionRecord, PersonRecord, ProgressRecord, ProgressStore, StandupRecord
from .windows import WEEKS_REPORTED, WeekWindow, as_utc, four_week_start, reported_weeks, week_window

logger = logging.getLogger(__name__)

ON_TRACK_THRESHOLD = 80.0
AT_RISK_THRESHOLD = 50.0

_max_workers_env = os.getenv("DASHBOARD_MAX_WORKERS")
DEFAULT_MAX_WORKERS: Optional[int] = int(_max_workers_env) if _max_workers_env else None


@dataclass
class _MemberActivity:
    progress: Dict[str, ProgressRecord]
    bold_actions: List[BoldActionRecord]
    standups: List[StandupRecord]


# ---------------------------------------------------------------------------
# PER-MEMBER
# ---------------------------------------------------------------------------


def _fetch_activity(
    store: ProgressStore,
    member_id: str,
    supervisor_id: Optional[str],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> _MemberActivity:
    return _MemberActivity(
        progress=store.get_training_progress(member_id),
        bold_actions=store.list_bold_actions(member_id, start=start, end=end),
        standups=store.list_standups(member_id, supervisor_id=supervisor_id, start=start, end=end),
    )


def _bucket_week(activity: _MemberActivity, window: WeekWindow, supervisor_id: Optional[str]) -> schemas.WeekRecord:
    trainings = [
        schemas.SubmissionItem(completed=True, timestamp=entry.last_updated)
        for entry in activity.progress.values()
        if entry.completed and window.contains(entry.last_updated)
    ]

    bold_actions = []
    for action in activity.bold_actions:
        if action.completed:
            if window.contains(action.completed_at):
                bold_actions.append(schemas.SubmissionItem(completed=True, timestamp=action.completed_at))
        elif window.contains(action.created_at):
            bold_actions.append(schemas.SubmissionItem(completed=False, timestamp=action.created_at))

    standups = []
    for standup in activity.standups:
        if supervisor_id is not None and standup.supervisor_id != supervisor_id:
            continue
        if standup.completed:
            if window.contains(standup.completed_at):
                standups.append(schemas.SubmissionItem(completed=True, timestamp=standup.completed_at))
        elif window.contains(standup.scheduled_for):
            standups.append(schemas.SubmissionItem(completed=False, timestamp=standup.scheduled_for))

    return schemas.WeekRecord(
        week_index=window.index,
        week_start=window.start,
        week_end=window.end,
        trainings=trainings,
        bold_actions=bold_actions,
        standups=standups,
    )


def _empty_week(window: WeekWindow) -> schemas.WeekRecord:
    return schemas.WeekRecord(week_index=window.index, week_start=window.start, week_end=window.end)


def _count_in_range(moments: Iterable[Optional[datetime]], start: datetime, end: datetime) -> int:
    return sum(1 for moment in moments if moment is not None and start <= as_utc(moment) <= end)


def _four_week_totals(
    activity: _MemberActivity,
    *,
    now: datetime,
    supervisor_id: Optional[str],
) -> schemas.FourWeekTotals:
    now = as_utc(now)
    start = four_week_start(now)
    standups = [
        s for s in activity.standups
        if s.completed and (supervisor_id is None or s.supervisor_id == supervisor_id)
    ]
    return schemas.FourWeekTotals(
        total_trainings=_count_in_range(
            (entry.last_updated for entry in activity.progress.values() if entry.completed), start, now
        ),
        total_bold_actions=_count_in_range(
            (action.completed_at for action in activity.bold_actions if action.completed), start, now
        ),
        total_standups=_count_in_range((s.completed_at for s in standups), start, now),
    )


def compute_member_week_window(
    member_id: str,
    supervisor_id: str,
    week_index: int,
    *,
    now: Optional[datetime] = None,
    store: Optional[ProgressStore] = None,
) -> schemas.WeekRecord:
    """
    One member's submissions for one calendar week.

    week_index 0 is the current week, 3 the oldest reported week; anything
    else raises ValueError. A member with no activity gets three empty lists.
    """
    window = week_window(now, week_index)
    store = store or ProgressStore()
    activity = _fetch_activity(store, member_id, supervisor_id, start=window.start, end=window.next_start)
    return _bucket_week(activity, window, supervisor_id)


def compute_member_four_week_totals(
    member_id: str,
    *,
    now: Optional[datetime] = None,
    supervisor_id: Optional[str] = None,
    store: Optional[ProgressStore] = None,
) -> schemas.FourWeekTotals:
    """
    Completed trainings, Bold Actions and standups between the start of the
    oldest reported week and `now`. Standups may be restricted to one
    supervisor.
    """
    moment = as_utc(now)
    store = store or ProgressStore()
    activity = _fetch_activity(store, member_id, supervisor_id, start=four_week_start(moment), end=moment)
    return _four_week_totals(activity, now=moment, supervisor_id=supervisor_id)


def _member_progress(
    store: ProgressStore,
    *,
    company_name: str,
    supervisor_id: str,
    member: PersonRecord,
    now: datetime,
) -> schemas.MemberProgress:
    windows = reported_weeks(now)
    try:
        activity = _fetch_activity(store, member.id, supervisor_id, start=windows[-1].start, end=windows[0].next_start)
        weeks = [_bucket_week(activity, window, supervisor_id) for window in windows]
        totals = _four_week_totals(activity, now=now, supervisor_id=supervisor_id)
        unavailable = False
    except Exception:
        logger.warning(
            "Failed to load progress for team member",
            exc_info=True,
            extra={"company_name": company_name, "supervisor_id": supervisor_id, "member_id": member.id},
        )
        weeks = [_empty_week(window) for window in windows]
        totals = schemas.FourWeekTotals()
        unavailable = True

    current = weeks[0]
    return schemas.MemberProgress(
        member_id=member.id,
        name=member.full_name,
        weekly=schemas.WeeklyCompletion(
            training=current.training_completed,
            bold_action=current.bold_action_completed,
            standup=current.standup_completed,
        ),
        weeks=weeks,
        four_week=totals,
        data_unavailable=unavailable,
    )


# ---------------------------------------------------------------------------
# ROLLUPS
# ---------------------------------------------------------------------------


def completion_status(percentage: float) -> schemas.CompletionStatus:
    if percentage >= ON_TRACK_THRESHOLD:
        return schemas.CompletionStatus.ON_TRACK
    if percentage >= AT_RISK_THRESHOLD:
        return schemas.CompletionStatus.AT_RISK
    return schemas.CompletionStatus.BEHIND


def completion_ratio(completed: int, total: int) -> schemas.CompletionRatio:
    percentage = round(completed / total * 100, 1) if total else 0.0
    return schemas.CompletionRatio(
        completed=completed,
        total=total,
        percentage=percentage,
        status=completion_status(percentage),
    )


def _team_rollup(members: List[schemas.MemberProgress]) -> Dict[str, schemas.CategoryRatios]:
    size = len(members)
    weekly = schemas.CategoryRatios(
        trainings=completion_ratio(sum(1 for m in members if m.weekly.training), size),
        bold_actions=completion_ratio(sum(1 for m in members if m.weekly.bold_action), size),
        standups=completion_ratio(sum(1 for m in members if m.weekly.standup), size),
    )
    four_week_total = size * WEEKS_REPORTED
    four_week = schemas.CategoryRatios(
        trainings=completion_ratio(sum(m.four_week.total_trainings for m in members), four_week_total),
        bold_actions=completion_ratio(sum(m.four_week.total_bold_actions for m in members), four_week_total),
        standups=completion_ratio(sum(m.four_week.total_standups for m in members), four_week_total),
    )
    return {"weekly": weekly, "four_week": four_week}


def _company_totals(teams: List[schemas.TeamMetrics]) -> schemas.CategoryRatios:
    def _sum(category: str) -> schemas.CompletionRatio:
        ratios = [getattr(team.weekly, category) for team in teams]
        return completion_ratio(sum(r.completed for r in ratios), sum(r.total for r in ratios))

    return schemas.CategoryRatios(
        trainings=_sum("trainings"),
        bold_actions=_sum("bold_actions"),
        standups=_sum("standups"),
    )


def _fan_out_width(team_size: int, max_workers: Optional[int]) -> int:
    width = team_size
    if max_workers is not None and max_workers > 0:
        width = min(width, max_workers)
    return max(width, 1)


def compute_team_metrics(
    store: ProgressStore,
    *,
    company_name: str,
    supervisor: PersonRecord,
    now: datetime,
    max_workers: Optional[int] = None,
) -> schemas.TeamMetrics:
    """
    All members of one supervisor, fetched concurrently; returns once every
    member fetch has finished.
    """
    members = store.list_team_members(company_name, supervisor.id)

    results: List[schemas.MemberProgress] = []
    if members:
        with ThreadPoolExecutor(max_workers=_fan_out_width(len(members), max_workers)) as pool:
            futures = [
                pool.submit(
                    _member_progress,
                    store,
                    company_name=company_name,
                    supervisor_id=supervisor.id,
                    member=member,
                    now=now,
                )
                for member in members
            ]
            wait(futures)
        results = [future.result() for future in futures]

    rollup = _team_rollup(results)
    return schemas.TeamMetrics(
        supervisor_id=supervisor.id,
        supervisor_name=supervisor.full_name,
        team_size=len(results),
        members=results,
        weekly=rollup["weekly"],
        four_week=rollup["four_week"],
    )


def compute_company_weekly_metrics(
    context: SessionContext,
    *,
    now: Optional[datetime] = None,
    store: Optional[ProgressStore] = None,
    cache: Optional[ResultCache] = None,
    force_refresh: bool = False,
    max_workers: Optional[int] = DEFAULT_MAX_WORKERS,
) -> schemas.WeeklyMetrics:
    """
    Weekly and four-week progress for every supervisor's team in the
    context's company.

    `now` defaults to the current time; a naive value is read as UTC.

    Results are cached per session context; `force_refresh` skips the cached
    value and stores the fresh one. The cache key does not include `now`, so
    within the TTL a call with a different `now` gets the result computed for
    the earlier one; pass `force_refresh=True` to compute for a specific
    moment. Failures listing supervisors or team members propagate; a failure
    for a single member does not.
    """
    cache = cache if cache is not None else metrics_cache
    key = metrics_cache_key(context)
    if not force_refresh:
        cached = cache.get(key)
        if cached is not None:
            return cached

    moment = as_utc(now)
    store = store or ProgressStore()
    company_name = context.company_name

    teams = [
        compute_team_metrics(
            store,
            company_name=company_name,
            supervisor=supervisor,
            now=moment,
            max_workers=max_workers,
        )
        for supervisor in store.list_supervisors(company_name)
    ]

    current = week_window(moment, 0)
    metrics = schemas.WeeklyMetrics(
        company_name=company_name,
        generated_at=moment,
        week_start=current.start,
        week_end=current.end,
        totals=_company_totals(teams),
        teams=teams,
    )
    cache.set(key, metrics)

    logger.info(
        "Computed weekly dashboard metrics",
        extra={
            "company_name": company_name,
            "requesting_user_id": context.requesting_user_id,
            "supervisors": len(teams),
            "members": sum(team.team_size for team in teams),
            "unavailable_members": sum(1 for team in teams for m in team.members if m.data_unavailable),
        },
    )
    return metrics


# ---------------------------------------------------------------------------
# DIRECTORY VIEWS
# ---------------------------------------------------------------------------


def _training_title(titles: Dict[str, str], training_id: str) -> str:
    return titles.get(training_id) or f"Training {training_id}"


def _latest_training(progress: Dict[str, ProgressRecord]) -> Optional[ProgressRecord]:
    completed = [entry for entry in progress.values() if entry.completed and entry.last_updated is not None]
    if not completed:
        return None
    return max(completed, key=lambda entry: entry.last_updated)


def _latest_bold_action(actions: List[BoldActionRecord], *, active_only: bool) -> Optional[BoldActionRecord]:
    candidates = [a for a in actions if not (active_only and a.completed)]
    if not candidates:
        return None
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    return max(candidates, key=lambda a: a.created_at or epoch)


def _directory_entries(
    store: ProgressStore,
    people: List[PersonRecord],
    *,
    company_name: str,
    active_only: bool,
) -> List[schemas.DirectoryEntry]:
    latest: Dict[str, tuple] = {}
    for person in people:
        try:
            action = _latest_bold_action(store.list_bold_actions(person.id), active_only=active_only)
            training = _latest_training(store.get_training_progress(person.id))
        except Exception:
            logger.warning(
                "Failed to load latest activity for user",
                exc_info=True,
                extra={"company_name": company_name, "user_id": person.id},
            )
            action, training = None, None
        latest[person.id] = (action, training)

    titles = store.get_training_titles(
        {training.training_id for _, training in latest.values() if training is not None}
    )

    entries = []
    for person in people:
        action, training = latest[person.id]
        entries.append(
            schemas.DirectoryEntry(
                user_id=person.id,
                name=person.full_name,
                role=person.role,
                supervisor_id=person.supervisor_id or None,
                latest_bold_action=(
                    schemas.LatestBoldAction(
                        action=action.action,
                        status=action.status,
                        created_at=action.created_at,
                        completed_at=action.completed_at,
                    )
                    if action is not None
                    else None
                ),
                latest_training=(
                    schemas.LatestTraining(
                        training_id=training.training_id,
                        title=_training_title(titles, training.training_id),
                        completed_at=training.last_updated,
                    )
                    if training is not None
                    else None
                ),
            )
        )
    return entries


def _matches(entry: schemas.DirectoryEntry, search: Optional[str]) -> bool:
    term = (search or "").strip().lower()
    if not term:
        return True
    haystack = [entry.name]
    if entry.latest_bold_action is not None:
        haystack.append(entry.latest_bold_action.action)
    if entry.latest_training is not None:
        haystack.append(entry.latest_training.title)
    return any(term in (text or "").lower() for text in haystack)


def list_company_directory(
    company_name: str,
    search: Optional[str] = None,
    *,
    store: Optional[ProgressStore] = None,
) -> List[schemas.DirectoryEntry]:
    """Supervisors and team members with their latest Bold Action and training."""
    store = store or ProgressStore()
    people = store.list_company_people(company_name)
    entries = _directory_entries(store, people, company_name=company_name, active_only=False)
    return [entry for entry in entries if _matches(entry, search)]


def list_supervisor_team(
    company_name: str,
    supervisor_id: str,
    search: Optional[str] = None,
    *,
    store: Optional[ProgressStore] = None,
) -> List[schemas.DirectoryEntry]:
    store = store or ProgressStore()
    members = store.list_team_members(company_name, supervisor_id)
    entries = _directory_entries(store, members, company_name=company_name, active_only=True)
    return [entry for entry in entries if _matches(entry, search)]
