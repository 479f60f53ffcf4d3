"""
Create the admin account from ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME.

Usage: python seed_admin.py
"""
import logging

import config
import crud
from database import SessionLocal, init_db

logger = logging.getLogger(__name__)


def seed_admin():
    init_db()
    db = SessionLocal()
    try:
        existing = crud.get_admin_by_email(db, config.ADMIN_EMAIL)
        if existing:
            logger.info(f"Admin already exists: {existing.email}")
            return existing
        admin = crud.create_admin(db, config.ADMIN_NAME, config.ADMIN_EMAIL, config.ADMIN_PASSWORD)
        logger.info(f"Admin created: {admin.email}")
        return admin
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed_admin()
