"""Assign invite codes to companies created before codes existed.

Safe to re-run: companies that already have a code are left alone.
"""

from __future__ import annotations

import logging

from leaderforge.database import WriteSessionLocal
from leaderforge.apps.accounts import services as account_services


def run() -> dict:
    db = WriteSessionLocal()
    try:
        summary = account_services.backfill_company_codes(db)
        db.commit()
        return summary
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    result = run()
    print("Company code backfill completed:", result)
