import logging
import time
from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def create_db_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy engine for the configured database"""
    url = settings.database_url.replace("postgres://", "postgresql://", 1)

    if _is_sqlite(url):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if _is_memory_sqlite(url):
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        connect_args = {}
        if settings.db_statement_timeout_ms and url.startswith("postgresql"):
            connect_args["options"] = f"-c statement_timeout={settings.db_statement_timeout_ms}"
        kwargs = {
            "pool_pre_ping": True,  # Test connections before using
            "pool_recycle": settings.db_pool_recycle,
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_timeout": settings.db_pool_timeout,
            "connect_args": connect_args,
        }

    try:
        engine = create_engine(url, echo=False, **kwargs)
        logger.info("✅ Database engine created successfully")
        if not _is_sqlite(url):
            logger.info(
                f"📊 Connection pool: size={settings.db_pool_size}, "
                f"max_overflow={settings.db_max_overflow}, timeout={settings.db_pool_timeout}s"
            )
    except Exception as e:
        logger.error(f"❌ Failed to create database engine: {e}")
        raise

    if settings.db_log_slow_queries:
        _install_slow_query_logging(engine, settings.db_slow_query_threshold)

    return engine


def _install_slow_query_logging(engine: Engine, threshold: float) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > threshold:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")

    logger.info(f"📊 Slow query logging enabled (threshold: {threshold}s)")


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
