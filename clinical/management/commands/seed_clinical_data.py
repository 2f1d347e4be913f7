"""
Management command to populate the database with demo clinical data.
"""
from datetime import timedelta
from decimal import Decimal
import random

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.utils import timezone

from clinical.models import (
    Patient, PatientAllergy, PatientMedication, PatientProblem, PatientVitals, User, Visit,
)
from clinical.services.news2 import score_patient

# (first, last, blood group, vitals rr/spo2/sbp/hr/temp, medications, allergies, problems)
PATIENTS = [
    ('Ada', 'Moreno', 'O+', (16, 97, 122, 72, '36.8'), ['metformin', 'lisinopril'], [], ['Type 2 diabetes']),
    ('Ben', 'Okafor', 'A-', (22, 94, 104, 96, '38.4'), ['warfarin'], ['penicillin'], ['Atrial fibrillation']),
    ('Chloe', 'Nakamura', 'B+', (30, 89, 85, 75, '37.0'), ['simvastatin', 'erythromycin'], ['sulfa'],
     ['Community acquired pneumonia']),
    ('Dev', 'Patel', 'AB+', (12, 96, 112, 88, '37.6'), ['sertraline', 'tramadol'], [], ['Depression', 'Back pain']),
    ('Elena', 'Rossi', 'O-', (8, 97, 120, 70, '36.5'), ['digoxin'], ['codeine'], ['Heart failure']),
    ('Farid', 'Haddad', 'A+', None, [], [], []),
]


class Command(BaseCommand):
    help = 'Populate database with demo clinical data'

    def add_arguments(self, parser):
        parser.add_argument('--seed', type=int, default=42)
        parser.add_argument('--no-score', action='store_true', help='Skip NEWS2 scoring after seeding')

    def handle(self, *args, **options):
        random.seed(options['seed'])
        self.stdout.write('Creating demo clinical data...')

        doctors = self.create_staff()
        patients = self.create_patients()
        self.create_visits(patients, doctors)

        if not options['no_score']:
            for p in patients:
                result = score_patient(p.patient_id)
                self.stdout.write(f'NEWS2 {p.patient_id}: {result.risk_level.value} ({result.total_score})')

        self.stdout.write(self.style.SUCCESS('Demo clinical data created.'))

    def create_staff(self):
        doctors = []
        for username, role in [('dr.house', User.ROLE_DOCTOR), ('dr.grey', User.ROLE_DOCTOR),
                               ('nurse.joy', User.ROLE_NURSE), ('admin', User.ROLE_ADMIN)]:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={'role': role, 'password': make_password('clinical-demo-pw')},
            )
            if role == User.ROLE_DOCTOR:
                doctors.append(user)
            self.stdout.write(f'Staff: {user.username} ({user.role})')
        return doctors

    def create_patients(self):
        patients = []
        now = timezone.now()
        for i, (first, last, blood, vitals, meds, allergies, problems) in enumerate(PATIENTS, start=1):
            patient, created = Patient.objects.get_or_create(
                patient_id=f'PAT-2026-{i:05d}',
                defaults={'first_name': first, 'last_name': last, 'blood_group': blood},
            )
            patients.append(patient)
            if not created:
                continue
            if vitals:
                rr, spo2, sbp, hr, temp = vitals
                # an older, calmer reading first so the latest one is what gets scored
                PatientVitals.objects.create(
                    patient=patient, respiratory_rate=16, oxygen_saturation=97, blood_pressure_systolic=120,
                    heart_rate=70, temperature=Decimal('36.8'), recorded_by='seed',
                    recorded_at=now - timedelta(hours=random.randint(6, 48)),
                )
                PatientVitals.objects.create(
                    patient=patient, respiratory_rate=rr, oxygen_saturation=spo2, blood_pressure_systolic=sbp,
                    blood_pressure_diastolic=random.randint(60, 90), heart_rate=hr, temperature=Decimal(temp),
                    recorded_by='seed', recorded_at=now - timedelta(minutes=random.randint(5, 120)),
                )
            for name in meds:
                PatientMedication.objects.create(patient=patient, medication_name=name, dosage='as prescribed')
            for substance in allergies:
                PatientAllergy.objects.create(patient=patient, substance=substance, severity='SEVERE')
            for title in problems:
                PatientProblem.objects.create(patient=patient, title=title)
            self.stdout.write(f'Patient: {patient}')
        return patients

    def create_visits(self, patients, doctors):
        today = timezone.now().date()
        for i, patient in enumerate(patients):
            doctor = doctors[i % len(doctors)]
            Visit.objects.get_or_create(
                patient=patient, practitioner=doctor, visit_date=today - timedelta(days=7 + i),
                defaults={'status': Visit.STATUS_COMPLETED},
            )
            Visit.objects.get_or_create(
                patient=patient, practitioner=doctor, visit_date=today + timedelta(days=i),
                defaults={'status': Visit.STATUS_SCHEDULED},
            )
