# backend/leaderforge/__init__.py
"""LeaderForge backend package."""

from .apps.accounts import models as _accounts_models  # noqa: F401
from .apps.training import models as _training_models  # noqa: F401
