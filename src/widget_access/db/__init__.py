# Public DB API exports
from .settings import DBSettings, get_db_settings
from .engine import DBEngine
from .base import Base, CreatedAtMixin, TimestampMixin
from .repository import Repository
from .uow import UnitOfWork
from .health import db_healthcheck
from .integration import attach_db, get_engine, EngineDep

__all__ = [
    "DBSettings",
    "get_db_settings",
    "DBEngine",
    "Base",
    "CreatedAtMixin",
    "TimestampMixin",
    "Repository",
    "UnitOfWork",
    "db_healthcheck",
    "attach_db",
    "get_engine",
    "EngineDep",
]
