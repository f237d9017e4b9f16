"""
Training app

Per-user activity that feeds the dashboards:
- Training progress map (video watched + worksheet submitted)
- Bold Actions and their completion reflections
- Supervisor-run standups
"""

from . import models, schemas, services  # noqa: F401

__all__ = ["models", "schemas", "services"]
