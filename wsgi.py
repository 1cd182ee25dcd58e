#wsgi.py
"""
wsgi.py – Gym Dashboard Entry Point
────────────────────────────────────────────
This file is used by Gunicorn to launch the Flask app.

    gunicorn wsgi:app

Expected project structure:
 ├── wsgi.py
 └── gymdash/
     ├── __init__.py  ← contains create_app()
     ├── dashboard_router.py
     ├── entries_router.py
     ├── settings_router.py
     └── ...
────────────────────────────────────────────
"""

import os
from gymdash import create_app

# Flask application factory
app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 10000))
    print(f"🚀 Starting Gym Dashboard on port {port}")
    app.run(host="0.0.0.0", port=port)
