from __future__ import annotations

from leaderforge.apps.accounts import models as account_models
from leaderforge.jobs import company_code_backfill


def test_backfill_job_commits_new_codes(db_session, session_factory, monkeypatch):
    db_session.add_all(
        [
            account_models.Company(name="Legacy", size=3, settings={}),
            account_models.Company(name="Modern", size=3, code="12345", settings={}),
        ]
    )
    db_session.commit()
    monkeypatch.setattr(company_code_backfill, "WriteSessionLocal", session_factory)

    summary = company_code_backfill.run()

    assert summary["codes_assigned"] == 1
    db_session.expire_all()
    legacy = db_session.get(account_models.Company, "Legacy")
    assert legacy.code is not None and len(legacy.code) == 5
    assert db_session.get(account_models.Company, "Modern").code == "12345"
