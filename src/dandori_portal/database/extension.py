from __future__ import annotations

from flask_sqlalchemy import SQLAlchemy

# Bound to the Flask app in main.create_app()
db = SQLAlchemy()
