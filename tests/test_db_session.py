from tutorcenter.core.config import settings
from tutorcenter.db.session import engine_options


def test_sqlite_engine_waits_on_file_lock() -> None:
    options = engine_options("sqlite+aiosqlite:///./tutorcenter.db")
    assert options["connect_args"] == {"timeout": settings.db_busy_timeout_seconds}
    assert "pool_recycle" not in options
    assert "pool_pre_ping" not in options


def test_postgres_engine_uses_recycled_pool() -> None:
    options = engine_options("postgresql+asyncpg://user:pw@db:5432/tutorcenter")
    assert options["pool_pre_ping"] is True
    assert options["pool_recycle"] == settings.db_pool_recycle_seconds
    assert "connect_args" not in options
    assert options["echo"] is settings.db_echo
