"""
PostgreSQL access using SQLAlchemy Core.

One pooled engine per Lambda container; repositories share it and keep every
statement parameterised.
"""

import json
from typing import Any, Dict, List, Optional

import boto3
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool
from sqlalchemy.sql import Executable

from helpdesk.config.settings import AppSettings
from helpdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

# Connection pooling for Lambda reuse.
_engine: Optional[Engine] = None


def build_engine(db_url: str) -> Engine:
    """Create an engine; SQLite (tests, local runs) gets foreign keys switched on."""
    if db_url.startswith("sqlite"):
        engine = create_engine(db_url)

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(
        db_url,
        poolclass=QueuePool,
        pool_size=1,
        max_overflow=2,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def get_engine(settings: AppSettings) -> Engine:
    """Get or create the shared engine."""
    global _engine
    if _engine is None:
        db_url = settings.database_url
        if not db_url and settings.db_secret_arn:
            db_url = _secret_to_db_url(settings.db_secret_arn)
        if not db_url:
            raise RuntimeError("DATABASE_URL or DB_SECRET_ARN must be configured")
        _engine = build_engine(db_url)
    return _engine


def reset_engine() -> None:
    """Dispose the shared engine (tests and schema scripts)."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def _secret_to_db_url(secret_arn: str) -> Optional[str]:
    """Build a SQLAlchemy URL from an RDS secret."""
    try:
        sm = boto3.client("secretsmanager")
        secret = json.loads(sm.get_secret_value(SecretId=secret_arn)["SecretString"])
    except Exception as exc:
        logger.error("Failed to load DB secret", extra={"error": str(exc)})
        return None

    host = secret.get("host")
    port = secret.get("port", 5432)
    username = secret.get("username")
    password = secret.get("password")
    dbname = secret.get("dbname", "postgres")
    if not (host and username and password):
        return None
    return f"postgresql+psycopg2://{username}:{password}@{host}:{port}/{dbname}"


class PostgresRepository:
    """Thin wrapper to keep SQL organized and parameterized."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def fetch_one(self, stmt: Executable) -> Optional[Dict[str, Any]]:
        """Execute a SELECT and return one row as dict."""
        with self.engine.connect() as conn:
            row = conn.execute(stmt).fetchone()
            return dict(row._mapping) if row else None

    def fetch_all(self, stmt: Executable) -> List[Dict[str, Any]]:
        with self.engine.connect() as conn:
            return [dict(row._mapping) for row in conn.execute(stmt)]

    def execute(self, stmt: Executable) -> int:
        """Execute a write in its own transaction and return the affected row count."""
        with self.engine.begin() as conn:
            return conn.execute(stmt).rowcount

    def execute_returning(self, stmt: Executable) -> Optional[Dict[str, Any]]:
        """Execute a write with RETURNING and hand back the first row."""
        with self.engine.begin() as conn:
            row = conn.execute(stmt).fetchone()
            return dict(row._mapping) if row else None
