"""
Alembic environment for the local content store.

Only the sqlite backend has tables; the GitHub backend keeps everything in
the repository. The URL comes from the API settings (DATABASE_URL).
"""
from __future__ import annotations

import sys
from pathlib import Path
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from alembic import context

API_DIR = Path(__file__).resolve().parents[1]  # apps/api
sys.path.insert(0, str(API_DIR))

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from sqlmodel import SQLModel  # noqa: E402

import campaign_map.core.models  # noqa: E402,F401  (registers content tables)
from campaign_map.core.config import get_settings  # noqa: E402
from campaign_map.core.db import resolve_sqlite_path  # noqa: E402

target_metadata = SQLModel.metadata


def content_db_url() -> str:
    url = get_settings().database_url
    sp = resolve_sqlite_path(url)
    if sp is None:
        return url
    sp.parent.mkdir(parents=True, exist_ok=True)
    return "sqlite:///" + sp.as_posix()


def run_offline() -> None:
    context.configure(
        url=content_db_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = content_db_url()
    engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool, future=True)

    with engine.connect() as connection:
        # sqlite cannot ALTER most constraints in place
        context.configure(connection=connection, target_metadata=target_metadata, render_as_batch=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
