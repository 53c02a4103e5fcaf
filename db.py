# backend/db.py
from datetime import datetime, timezone

from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
migrate = Migrate()


def utcnow() -> datetime:
    """Naive UTC timestamp; every DateTime column in this app stores UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
