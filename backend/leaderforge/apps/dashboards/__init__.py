"""
Dashboards app

Read-only views over the accounts and training data:
- Executive weekly / four-week progress metrics per supervisor team
- Company directory and supervisor team views
"""

from . import schemas, services  # noqa: F401

__all__ = ["schemas", "services"]
