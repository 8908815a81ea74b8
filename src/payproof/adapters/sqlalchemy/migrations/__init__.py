"""Schema migrations for the checkout tables, run programmatically through Alembic."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from payproof.config.storage import get_database_uri

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent

log = getLogger(__name__)


def build_config() -> Config:
    """Return an Alembic Config pointing at the bundled revision scripts.

    No ini file is involved; ``env.py`` reads the database URL or a live connection
    from the config object itself.
    """

    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    return config


def head_revision() -> str | None:
    return ScriptDirectory.from_config(build_config()).get_current_head()


def current_revision(engine: Engine) -> str | None:
    """Return the revision stamped in ``engine``'s database, ``None`` for a blank schema."""

    with engine.connect() as connection:
        return MigrationContext.configure(connection).get_current_revision()


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Bring the schema up to the newest revision.

    With ``engine`` the upgrade runs inside one transaction on that engine, which keeps
    in-memory sqlite databases usable; otherwise Alembic connects to ``database_uri``.
    """

    config = build_config()
    if engine is None:
        config.set_main_option("sqlalchemy.url", database_uri or get_database_uri())
        command.upgrade(config, "head")
        return

    before = current_revision(engine)
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, "head")
    log.debug("Checkout schema at %s (was %s)", head_revision(), before)
