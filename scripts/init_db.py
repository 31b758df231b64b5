from __future__ import annotations

import importlib

from config import get_settings_module

from dandori_portal.database.bootstrap import init_schema
from dandori_portal.database.extension import db
from dandori_portal.main import create_app


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    app = create_app()
    with app.app_context():
        tables = init_schema(db, db_config=getattr(settings, "DB_CONFIG", None))
        url = db.engine.url.render_as_string(hide_password=True)
    print(f"OK: schema ready -> {url} (tables={len(tables)})")


if __name__ == "__main__":
    main()
