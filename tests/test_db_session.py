from stylesquare.db.session import normalize_database_url


def test_database_urls_are_mapped_to_async_drivers() -> None:
    assert normalize_database_url("postgres://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert normalize_database_url("postgresql://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert normalize_database_url("postgresql+asyncpg://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert normalize_database_url("sqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"
    assert normalize_database_url(" sqlite+aiosqlite:///x.db ") == "sqlite+aiosqlite:///x.db"
