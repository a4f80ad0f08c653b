# backend/wsgi.py
from frontdesk import create_app

app = create_app()
