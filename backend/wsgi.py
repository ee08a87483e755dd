# backend/wsgi.py
from kouriten import create_app

app = create_app()
