from __future__ import annotations

import importlib

from config import get_settings_module

from dandori_portal.database.bootstrap import init_schema, seed_demo
from dandori_portal.database.extension import db
from dandori_portal.main import create_app


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    app = create_app()
    with app.app_context():
        init_schema(db, db_config=getattr(settings, "DB_CONFIG", None))
        tenant_id = seed_demo(db)
    print(f"OK: demo tenant seeded (tenant_id={tenant_id})")


if __name__ == "__main__":
    main()
