# Overview: Shared Flask extension instances; bound to the app in create_app().

# backend/caixa/extensions.py
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Single session/engine registry for products, sales and the stock ledger
db = SQLAlchemy()
# Alembic wiring; revisions live in backend/migrations/versions
migrate = Migrate()
