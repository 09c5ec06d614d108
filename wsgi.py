"""WSGI entry point for the task service."""

import atexit
import os

from todo_app import create_app
from todo_app.database import close_pool

app = create_app(os.getenv("FLASK_ENV", "production"))
atexit.register(close_pool, app)
