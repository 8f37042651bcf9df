# backend/wsgi.py
from caixa import create_app

app = create_app()
