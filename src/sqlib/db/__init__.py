from sqlib.db.models import (
    Base,
    # ORM Models
    ExecutionSlotModel,
)

# Connection
from sqlib.db.connection import (
    # Engine/Session
    create_engine_from_settings,
    dispose_engine,
    get_engine,
    get_session,
    # Setup
    drop_db,
    init_db,
)

__all__ = [
    # Base
    "Base",
    # ORM Models
    "ExecutionSlotModel",
    # Engine/Session
    "create_engine_from_settings",
    "get_engine",
    "dispose_engine",
    "get_session",
    # Setup
    "init_db",
    "drop_db",
]
