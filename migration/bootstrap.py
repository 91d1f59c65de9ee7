"""
Bootstrap a salon database
- Creates any missing tables
- Creates the admin account, or resets its password if it already exists
- Optionally (--demo) seeds a small catalog when the tables are empty

Usage:
  python -m migration.bootstrap --db sqlite:///./salon.db --username admin --password '...'
"""
import argparse
import getpass
from decimal import Decimal

from sqlalchemy import create_engine, event, func, select
from sqlalchemy.orm import sessionmaker

from salon import crud, models
from salon.db import Base

DEMO_PRODUCTS = [
    {"name": "Argan Hair Oil", "category": "Hair Care", "price": Decimal("500.00")},
    {"name": "Keratin Shampoo", "category": "Hair Care", "price": Decimal("300.00")},
    {"name": "Vitamin C Serum", "category": "Skin Care", "price": Decimal("750.00")},
]

DEMO_SERVICES = [
    {"name": "Haircut & Styling", "category": "Hair", "price": Decimal("400.00"), "duration_min": 45},
    {"name": "Classic Facial", "category": "Skin", "price": Decimal("1200.00"), "duration_min": 60},
    {"name": "Swedish Massage", "category": "Spa", "price": Decimal("1800.00"), "duration_min": 60},
]

DEMO_TEAM = [
    {"name": "Asha", "role": "Stylist", "specialization": "Colour & cuts", "experience_years": 6},
    {"name": "Ravi", "role": "Therapist", "specialization": "Deep tissue", "experience_years": 4},
]


def make_session(database_url: str):
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine = create_engine(database_url, connect_args=connect_args, future=True)
    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)()


def _is_empty(db, model) -> bool:
    return db.execute(select(func.count()).select_from(model)).scalar_one() == 0


def seed_demo_catalog(db) -> dict:
    seeded = {}
    for model, rows in ((models.Product, DEMO_PRODUCTS), (models.Service, DEMO_SERVICES), (models.TeamMember, DEMO_TEAM)):
        if _is_empty(db, model):
            db.add_all(model(**row) for row in rows)
            seeded[model.__tablename__] = len(rows)
    db.commit()
    return seeded


def bootstrap(database_url: str, username: str, password: str, demo: bool = False) -> dict:
    if not username or not password:
        raise ValueError("username and password are required")

    db = make_session(database_url)
    try:
        admin = crud.create_admin(db, username, password)
        result = {"admin_id": admin.id, "seeded": {}}
        if demo:
            result["seeded"] = seed_demo_catalog(db)
        return result
    finally:
        db.close()
        db.get_bind().dispose()


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--db", required=True, help="SQLAlchemy database URL")
    parser.add_argument("--username", required=True, help="Admin username")
    parser.add_argument("--password", help="Admin password (prompted when omitted)")
    parser.add_argument("--demo", action="store_true", help="Seed a demo catalog into empty tables")
    args = parser.parse_args()
    password = args.password or getpass.getpass("Admin password: ")
    result = bootstrap(args.db, args.username, password, demo=args.demo)
    print(f"admin id={result['admin_id']} seeded={result['seeded']}")

if __name__ == "__main__":
    main()
