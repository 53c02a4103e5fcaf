#!/usr/bin/env python3
# seed.py
"""
Provision the portal's baseline data. Safe to run repeatedly.

  - admin account from ADMIN_EMAIL / ADMIN_PASSWORD (created once, never updated)
  - sample mentors when the seniors directory is empty
  - optional demo student TEST001 / test123

Usage:
  flask --app wsgi seed [--with-test-student]
  python seed.py
"""
from __future__ import annotations

from flask import current_app

from db import db
from models.admin_user import AdminUser
from models.senior import Senior
from models.student import Student
from services.credentials import CredentialStore

TEST_STUDENT_ID = "TEST001"
TEST_STUDENT_PASSWORD = "test123"

SAMPLE_SENIORS = [
    {"name": "John Smith",    "email": "john.smith@example.com",    "specialization": "AWS Cloud Architecture",
     "graduation_year": "2023", "linkedin_profile": "https://linkedin.com/in/johnsmith"},
    {"name": "Sarah Johnson", "email": "sarah.johnson@example.com", "specialization": "DevOps Engineering",
     "graduation_year": "2022", "linkedin_profile": "https://linkedin.com/in/sarahjohnson"},
    {"name": "Mike Chen",     "email": "mike.chen@example.com",     "specialization": "Azure Solutions",
     "graduation_year": "2023", "linkedin_profile": "https://linkedin.com/in/mikechen"},
    {"name": "Emily Davis",   "email": "emily.davis@example.com",   "specialization": "Google Cloud Platform",
     "graduation_year": "2022", "linkedin_profile": "https://linkedin.com/in/emilydavis"},
]


def seed_admin(email: str | None, password: str | None) -> bool:
    if not (email and password):
        current_app.logger.warning("[seed] ADMIN_EMAIL/ADMIN_PASSWORD not set; no admin provisioned")
        return False
    if AdminUser.query.filter_by(email=email).first():
        return False
    db.session.add(AdminUser(email=email, password_hash=CredentialStore.hash_password(password)))
    db.session.commit()
    print(f"✅ Admin user created: {email}")
    return True


def seed_seniors() -> int:
    if Senior.query.count():
        return 0
    db.session.add_all(Senior(available_for_mentoring=True, **row) for row in SAMPLE_SENIORS)
    db.session.commit()
    print(f"✅ Sample seniors inserted: {len(SAMPLE_SENIORS)}")
    return len(SAMPLE_SENIORS)


def seed_test_student() -> bool:
    if Student.query.filter_by(student_id=TEST_STUDENT_ID).first():
        return False
    db.session.add(Student(
        student_id=TEST_STUDENT_ID,
        name="Test Student",
        email="test.student@gmail.com",
        password_hash=CredentialStore.hash_password(TEST_STUDENT_PASSWORD),
        department="Computer Science",
        batch_year="2024-2028",
    ))
    db.session.commit()
    print(f"✅ Test student created - ID: {TEST_STUDENT_ID}, Password: {TEST_STUDENT_PASSWORD}")
    return True


def seed_all(*, with_test_student: bool = False) -> None:
    cfg = current_app.config
    seed_admin(cfg.get("ADMIN_EMAIL"), cfg.get("ADMIN_PASSWORD"))
    seed_seniors()
    if with_test_student:
        seed_test_student()


if __name__ == "__main__":
    from app import create_app

    app = create_app()
    with app.app_context():
        db.create_all()
        seed_all(with_test_student=True)
        print("✅ Database initialization completed")
