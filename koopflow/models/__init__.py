"""Database models package."""

from koopflow.models.organization import Organization
from koopflow.models.user import User
from koopflow.models.koopovereenkomst import Koopovereenkomst

__all__ = ['Organization', 'User', 'Koopovereenkomst']
