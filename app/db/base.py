from sqlalchemy.orm import declarative_base

# Shared metadata for users, interviews, assessments and reports.
# app.db.init_db imports app.db.models so every table is registered before create_all.
Base = declarative_base()
