#!/usr/bin/env python3
"""
Initialize the database with the required tables and the default coaching rubric.
Run this script once before starting the application.
"""

from salescoach.models.database import engine, Base, SessionLocal
from salescoach.models import models
from salescoach.utils.rubric import seed_default_rubric

def init_database():
    """Create all tables and seed the sales process steps."""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Database tables created successfully!")

    db = SessionLocal()
    try:
        created = seed_default_rubric(db)
    finally:
        db.close()

    if created:
        print(f"Seeded default rubric with {created} behaviors.")
    else:
        print("Rubric already present, skipping seed.")
    print("You can now start the FastAPI server with: uvicorn salescoach.main:app --reload")

if __name__ == "__main__":
    init_database()
