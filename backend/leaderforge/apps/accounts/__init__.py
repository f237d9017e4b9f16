# backend/leaderforge/apps/accounts/__init__.py
"""
Accounts app

Responsible for:
- Companies, their invite codes and settings
- Users, roles and supervisor assignment
- Signup flows (company setup, supervisor join, team join)
- Company-level Bold Action progress and leaderboard

Other apps depend on these models for "who belongs to which company and
who reports to whom".
"""

from . import models, schemas, services  # noqa: F401

__all__ = ["models", "schemas", "services"]
