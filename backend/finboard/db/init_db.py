from __future__ import annotations

import logging

from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from finboard.core.config import settings
from finboard.core.security import hash_password
from finboard.models.user import User

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("users", "accounts", "transfers", "transactions")


def ensure_seed_data(db: Session) -> None:
    # Fail fast if database schema is behind code.
    inspector = inspect(db.get_bind())
    missing = [t for t in REQUIRED_TABLES if not inspector.has_table(t)]
    if missing:
        raise RuntimeError(
            f"Database schema is outdated (missing tables: {', '.join(missing)}). "
            "Run: alembic upgrade head"
        )

    # Create a default admin when database is empty.
    if db.scalar(select(User.id).limit(1)) is not None:
        return

    user = User(
        username=settings.seed_admin_username,
        password_hash=hash_password(settings.seed_admin_password),
        role=User.ROLE_ADMIN,
    )
    db.add(user)
    db.commit()
    logger.info("Created default admin user %r", user.username)
