from __future__ import annotations

# Top-level WSGI entry so `gunicorn wsgi:app` works when repository root is PYTHONPATH
# This delegates to the factory in `dashboard_app.app.create_app`.
from dashboard_app.app import create_app


app = create_app()
