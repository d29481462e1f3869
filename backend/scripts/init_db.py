"""Create the database schema."""

from __future__ import annotations

import asyncio

from app.config import get_settings
from app.db.init import init_database
from app.db.session import Database


async def _run() -> None:
    database = Database(get_settings().database_url)
    try:
        await init_database(database)
        print(f"Schema ready at {database.engine.url.render_as_string(hide_password=True)}")
    finally:
        await database.dispose()


def main() -> None:
    asyncio.run(_run())


if __name__ == "__main__":
    main()
