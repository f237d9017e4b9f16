from __future__ import annotations

from datetime import datetime, timedelta, timezone

from leaderforge.apps.accounts import models as account_models
from leaderforge.apps.dashboards import services as dashboard_services
from leaderforge.apps.dashboards.cache import ResultCache
from leaderforge.apps.dashboards.store import ProgressStore
from leaderforge.apps.training import models as training_models
from leaderforge.security import SessionContext

THIS_WEEK = datetime(2024, 3, 12, 9, 0, tzinfo=timezone.utc)


def _seed(db_session):
    db_session.add_all(
        [
            account_models.User(id="exec-1", first_name="Erin", last_name="Exec", role=account_models.UserRole.EXECUTIVE, company_name="Acme"),
            account_models.User(id="sup-s", first_name="Sara", last_name="Lead", role=account_models.UserRole.SUPERVISOR, company_name="Acme"),
            account_models.User(id="mem-a", first_name="Alex", last_name="Able", role=account_models.UserRole.TEAM_MEMBER, company_name="Acme", supervisor_id="sup-s"),
            account_models.User(id="mem-b", first_name="Blair", last_name="Bee", role=account_models.UserRole.TEAM_MEMBER, company_name="Acme", supervisor_id="sup-s"),
            account_models.User(id="mem-z", first_name="Zed", last_name="Else", role=account_models.UserRole.TEAM_MEMBER, company_name="Globex", supervisor_id="sup-s"),
        ]
    )
    db_session.add(
        training_models.TrainingProgressDocument(
            user_id="mem-a",
            entries={
                # Written by an older client as an exported epoch mapping.
                "t1": {"videoCompleted": True, "worksheetCompleted": True, "lastUpdated": {"seconds": int(THIS_WEEK.timestamp()), "nanoseconds": 0}},
                "t2": {"videoCompleted": True, "worksheetCompleted": False, "lastUpdated": "2024-03-12T10:00:00Z"},
            },
        )
    )
    db_session.add_all(
        [
            training_models.BoldAction(
                id="ba-1",
                user_id="mem-a",
                action="Lead the retro",
                status=training_models.BoldActionStatus.COMPLETED,
                created_at=THIS_WEEK - timedelta(days=1),
                completed_at=THIS_WEEK,
            ),
            training_models.BoldAction(
                id="ba-old",
                user_id="mem-a",
                action="Ancient",
                status=training_models.BoldActionStatus.COMPLETED,
                created_at=THIS_WEEK - timedelta(weeks=10),
                completed_at=THIS_WEEK - timedelta(weeks=9),
            ),
            training_models.Standup(
                id="st-1",
                user_id="mem-a",
                supervisor_id="sup-s",
                status=training_models.StandupStatus.COMPLETED,
                scheduled_for=THIS_WEEK,
                completed_at=THIS_WEEK,
            ),
            training_models.Standup(
                id="st-2",
                user_id="mem-a",
                supervisor_id="sup-other",
                status=training_models.StandupStatus.COMPLETED,
                scheduled_for=THIS_WEEK,
                completed_at=THIS_WEEK,
            ),
        ]
    )
    db_session.commit()


def test_store_lists_people_by_company_and_role(db_session, session_factory):
    _seed(db_session)
    store = ProgressStore(session_factory)

    assert [p.id for p in store.list_supervisors("Acme")] == ["sup-s"]
    assert [p.id for p in store.list_team_members("Acme", "sup-s")] == ["mem-a", "mem-b"]
    assert [p.id for p in store.list_company_people("Acme")] == ["mem-a", "mem-b", "sup-s"]


def test_store_normalises_timestamps(db_session, session_factory):
    _seed(db_session)
    store = ProgressStore(session_factory)

    progress = store.get_training_progress("mem-a")
    assert progress["t1"].completed is True
    assert progress["t1"].last_updated == THIS_WEEK
    assert progress["t2"].completed is False
    assert store.get_training_progress("mem-b") == {}

    actions = store.list_bold_actions("mem-a")
    assert actions[0].completed_at == THIS_WEEK
    assert actions[0].completed_at.tzinfo is not None


def test_store_filters_by_range_and_supervisor(db_session, session_factory):
    _seed(db_session)
    store = ProgressStore(session_factory)
    start = THIS_WEEK - timedelta(days=3)
    end = THIS_WEEK + timedelta(days=3)

    assert [a.id for a in store.list_bold_actions("mem-a", start=start, end=end)] == ["ba-1"]
    assert [s.id for s in store.list_standups("mem-a", supervisor_id="sup-s")] == ["st-1"]
    assert {s.id for s in store.list_standups("mem-a", start=start, end=end)} == {"st-1", "st-2"}


def test_company_metrics_over_sql_store(db_session, session_factory, now):
    _seed(db_session)

    metrics = dashboard_services.compute_company_weekly_metrics(
        SessionContext(company_name="Acme", requesting_user_id="exec-1"),
        now=now,
        store=ProgressStore(session_factory),
        cache=ResultCache(),
        max_workers=1,
    )

    team = metrics.teams[0]
    assert team.team_size == 2
    members = {m.member_id: m for m in team.members}
    assert members["mem-a"].weekly.model_dump() == {"training": True, "bold_action": True, "standup": True}
    assert members["mem-a"].four_week.model_dump() == {"total_trainings": 1, "total_bold_actions": 1, "total_standups": 1}
    assert members["mem-b"].four_week.total_trainings == 0
    assert (metrics.totals.standups.completed, metrics.totals.standups.total) == (1, 2)
