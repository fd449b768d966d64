#!/usr/bin/env python
"""
Seed Data
Script to seed the configured storage with demo users and a month of history
"""

import sys
import os
import argparse
import logging
import random
from datetime import datetime, timedelta, date
from typing import List

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import entities
from config import get_settings
from storage import Storage, create_storage


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_PATIENT_ID = "demo-patient"
DEMO_PROFESSIONAL_ID = "demo-professional"


def seed_users(storage: Storage) -> entities.User:
    """Create the demo patient and professional; returns the patient"""
    logger.info("Creating demo users...")

    patient = storage.upsert_user({
        "id": DEMO_PATIENT_ID,
        "email": "demo.patient@caretrack.dev",
        "first_name": "John",
        "last_name": "Doe",
        "user_role": "patient",
        "setup_step": 2,
        "setup_completed": True,
    })
    storage.upsert_user({
        "id": DEMO_PROFESSIONAL_ID,
        "email": "demo.doctor@caretrack.dev",
        "first_name": "Sarah",
        "last_name": "Chen",
        "user_role": "professional",
        "is_healthcare_professional": True,
        "license_number": "MD-458812",
        "specialty": "Internal Medicine",
        "institution": "Riverside Clinic",
        "setup_step": 3,
        "setup_completed": True,
    })

    if storage.get_health_profile(patient.id) is None:
        storage.create_health_profile({
            "user_id": patient.id,
            "date_of_birth": date(1965, 5, 15),
            "emergency_contact": "Jane Doe",
            "emergency_phone": "+15551234567",
            "allergies": ["Penicillin"],
            "chronic_conditions": ["Type 2 Diabetes", "Hypertension"],
        })
    return patient


def seed_medications(storage: Storage, user_id: str) -> List[entities.Medication]:
    """Add the demo prescriptions unless the user already has medications"""
    existing = storage.get_medications(user_id)
    if existing:
        logger.info("Demo medications already exist")
        return existing

    start = date.today() - timedelta(days=60)
    medications_data = [
        {"name": "Metformin", "dosage": "500mg", "frequency": "Twice daily",
         "purpose": "Blood sugar control", "instructions": "Take with meals"},
        {"name": "Lisinopril", "dosage": "10mg", "frequency": "Once daily",
         "purpose": "Blood pressure", "instructions": "Take in the morning"},
        {"name": "Atorvastatin", "dosage": "20mg", "frequency": "Once daily",
         "purpose": "Cholesterol", "instructions": "Take at bedtime"},
    ]

    medications = [
        storage.create_medication({
            **data,
            "user_id": user_id,
            "prescribed_by": "Dr. Sarah Chen",
            "start_date": start,
            "is_active": True,
        })
        for data in medications_data
    ]
    logger.info(f"Created {len(medications)} medications")
    return medications


def seed_dose_history(storage: Storage, user_id: str, medications: List[entities.Medication], days: int = 30):
    """One log per medication per day, roughly 85% taken"""
    now = datetime.utcnow()
    count = 0
    for days_ago in range(days, 0, -1):
        day = now - timedelta(days=days_ago)
        for medication in medications:
            missed = random.random() > 0.85
            storage.create_medication_log({
                "user_id": user_id,
                "medication_id": medication.id,
                "taken_at": day.replace(hour=8, minute=random.randint(0, 45)),
                "dosage_taken": None if missed else medication.dosage,
                "missed": missed,
            })
            count += 1
    logger.info(f"Created {count} dose logs")


def seed_symptoms_and_metrics(storage: Storage, user_id: str):
    now = datetime.utcnow()
    symptoms = [
        ("Headache", 4, ["stress"], 12),
        ("Fatigue", 5, ["poor sleep"], 8),
        ("Dizziness", 3, [], 3),
    ]
    for name, severity, triggers, days_ago in symptoms:
        storage.create_symptom({
            "user_id": user_id,
            "name": name,
            "severity": severity,
            "triggers": triggers,
            "occurred_at": now - timedelta(days=days_ago),
        })

    for days_ago in range(14, 0, -2):
        storage.create_health_metric({
            "user_id": user_id,
            "type": "blood_pressure",
            "value": f"{random.randint(118, 138)}/{random.randint(76, 88)}",
            "unit": "mmHg",
            "measured_at": now - timedelta(days=days_ago),
        })


def seed_appointments(storage: Storage, user_id: str):
    now = datetime.utcnow().replace(minute=0, second=0, microsecond=0)
    storage.create_appointment({
        "user_id": user_id,
        "title": "Quarterly diabetes review",
        "provider": "Dr. Sarah Chen",
        "type": "follow-up",
        "location": "Riverside Clinic",
        "appointment_date": now - timedelta(days=20),
        "duration": 30,
        "status": "completed",
        "outcome": "A1C improved; continue current plan",
    })
    storage.create_appointment({
        "user_id": user_id,
        "title": "Blood pressure check",
        "provider": "Dr. Sarah Chen",
        "type": "checkup",
        "location": "Riverside Clinic",
        "appointment_date": now + timedelta(days=5, hours=2),
        "duration": 20,
        "status": "scheduled",
    })


def seed_all(clear_existing: bool = False, days: int = 30):
    """Seed everything into the storage named by settings"""
    settings = get_settings()
    storage = create_storage(settings)

    if clear_existing:
        logger.warning("Clearing existing demo users and their data...")
        storage.delete_user(DEMO_PATIENT_ID)
        storage.delete_user(DEMO_PROFESSIONAL_ID)

    patient = seed_users(storage)
    medications = seed_medications(storage, patient.id)
    seed_dose_history(storage, patient.id, medications, days=days)
    seed_symptoms_and_metrics(storage, patient.id)
    seed_appointments(storage, patient.id)

    stats = storage.get_dashboard_stats(patient.id)

    print("\n" + "=" * 60)
    print("Seeding Complete!")
    print("=" * 60)
    print(f"\nStorage backend: {settings.STORAGE_BACKEND}")
    print(f"  Active medications: {stats.medications_active}")
    print(f"  Upcoming appointments: {stats.upcoming_appointments}")
    for medication in medications:
        rate = storage.get_medication_adherence(patient.id, medication.id, 7)
        print(f"  {medication.name} 7-day adherence: {rate}%")

    print(f"\nDemo Patient ID: {DEMO_PATIENT_ID}")
    print(f"Demo Professional ID: {DEMO_PROFESSIONAL_ID}")


def main():
    parser = argparse.ArgumentParser(
        description="Seed the configured storage with demo data"
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete the demo users and their data before seeding"
    )
    parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="Days of dose history to generate"
    )

    args = parser.parse_args()

    seed_all(clear_existing=args.clear, days=args.days)


if __name__ == "__main__":
    main()
