#!/usr/bin/env python3
"""
Reset the database by removing all data and recreating tables.
The default rubric is seeded again afterwards.
"""

import sys
from salescoach.models.database import engine, Base, SessionLocal
from salescoach.models import models
from salescoach.utils.rubric import seed_default_rubric

def reset_database():
    """Drop all tables, recreate them and reseed the rubric."""
    print("Resetting database - this will remove ALL data...")

    print("Dropping all tables...")
    Base.metadata.drop_all(bind=engine)

    print("Creating fresh tables...")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        created = seed_default_rubric(db)
    finally:
        db.close()

    print(f"Database reset complete! Rubric reseeded with {created} behaviors.")

def check_database_status():
    """Print what data exists in the database."""
    print("Current database status:")

    db = SessionLocal()
    try:
        print(f"Steps: {db.query(models.Step).count()}")
        print(f"Behaviors: {db.query(models.Behavior).count()}")

        users = db.query(models.User).order_by(models.User.full_name).all()
        print(f"Users: {len(users)}")
        for user in users:
            print(f"  - {user.full_name} ({user.email})")

        print(f"Teams: {db.query(models.Team).count()}")

        assessments = db.query(models.Assessment).all()
        print(f"Assessments: {len(assessments)}")
        for assessment in assessments:
            print(f"  - {assessment.title} ({assessment.assessee_name})")
    finally:
        db.close()

if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "--check":
        check_database_status()
    else:
        print("SalesCoach Database Reset Tool")
        print("=" * 40)

        check_database_status()

        print("\nWARNING: This will DELETE ALL DATA in the database!")
        confirm = input("Type 'YES' to confirm reset: ")

        if confirm == "YES":
            reset_database()
        else:
            print("Reset cancelled.")
