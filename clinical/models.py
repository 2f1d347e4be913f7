"""
Database models for the clinical safety backend.

Patients, vitals, medications, allergies, problems and visits are owned
by the wider hospital system; they are modelled here only with the fields
the clinical intelligence services read.  :class:`ClinicalAlert` is the
one table this app writes to, together with :class:`AlertDedupLock`
(per-key lock rows) and :class:`AuditEvent`.
"""
from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .intelligence.lifecycle import (
    RECURRING_ALERT_TYPES,
    AlertSeverity,
    AlertStatus,
    AlertType,
)
from .intelligence.news2 import VitalsSnapshot


def _choices(enum_cls) -> list[tuple[str, str]]:
    return [(m.value, m.value) for m in enum_cls]


class User(AbstractUser):
    """Hospital staff account.

    ``role`` drives access to the clinical endpoints: doctors, nurses and
    admins may read alerts; only doctors and admins run drug checks and
    view the risk dashboard.
    """
    ROLE_DOCTOR = 'DOCTOR'
    ROLE_NURSE = 'NURSE'
    ROLE_ADMIN = 'ADMIN'
    ROLE_RECEPTIONIST = 'RECEPTIONIST'
    ROLE_CHOICES = [
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_NURSE, 'Nurse'),
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_RECEPTIONIST, 'Receptionist'),
    ]
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_RECEPTIONIST)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Patient(models.Model):
    STATUS_ACTIVE = 'ACTIVE'
    STATUS_INACTIVE = 'INACTIVE'
    STATUS_CHOICES = [(STATUS_ACTIVE, 'Active'), (STATUS_INACTIVE, 'Inactive')]

    BLOOD_GROUP_CHOICES = [
        (g, g) for g in ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-', 'UNKNOWN')
    ]

    patient_id = models.CharField(max_length=14, primary_key=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    blood_group = models.CharField(max_length=8, choices=BLOOD_GROUP_CHOICES, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return f"{self.full_name} ({self.patient_id})"


class PatientVitals(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='vitals')
    respiratory_rate = models.PositiveSmallIntegerField(null=True, blank=True)
    oxygen_saturation = models.PositiveSmallIntegerField(null=True, blank=True)
    blood_pressure_systolic = models.PositiveSmallIntegerField(null=True, blank=True)
    blood_pressure_diastolic = models.PositiveSmallIntegerField(null=True, blank=True)
    heart_rate = models.PositiveSmallIntegerField(null=True, blank=True)
    temperature = models.DecimalField(max_digits=4, decimal_places=1, null=True, blank=True)
    recorded_by = models.CharField(max_length=100, blank=True)
    recorded_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [models.Index(fields=['patient', 'recorded_at'], name='vitals_patient_recorded_idx')]

    def to_snapshot(self) -> VitalsSnapshot:
        return VitalsSnapshot(
            respiratory_rate=self.respiratory_rate,
            oxygen_saturation=self.oxygen_saturation,
            systolic_bp=self.blood_pressure_systolic,
            heart_rate=self.heart_rate,
            temperature=self.temperature,
            vitals_id=self.pk,
            recorded_at=self.recorded_at,
        )

    def __str__(self) -> str:
        return f"vitals {self.pk} p={self.patient_id} @ {self.recorded_at:%F %T}"


class PatientMedication(models.Model):
    STATUS_ACTIVE = 'ACTIVE'
    STATUS_DISCONTINUED = 'DISCONTINUED'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_DISCONTINUED, 'Discontinued'),
        (STATUS_COMPLETED, 'Completed'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='medications')
    medication_name = models.CharField(max_length=200)
    dosage = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.medication_name} ({self.status})"


class PatientAllergy(models.Model):
    SEVERITY_CHOICES = [
        (s, s) for s in ('MILD', 'MODERATE', 'SEVERE', 'LIFE_THREATENING')
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='allergies')
    substance = models.CharField(max_length=200)
    severity = models.CharField(max_length=20, choices=SEVERITY_CHOICES, default='MODERATE')
    reaction = models.CharField(max_length=255, blank=True)
    active = models.BooleanField(default=True, db_index=True)

    def __str__(self) -> str:
        return f"allergy {self.substance} ({self.severity})"


class PatientProblem(models.Model):
    STATUS_ACTIVE = 'ACTIVE'
    STATUS_RESOLVED = 'RESOLVED'
    STATUS_CHOICES = [(STATUS_ACTIVE, 'Active'), (STATUS_RESOLVED, 'Resolved')]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='problems')
    title = models.CharField(max_length=200)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)

    def __str__(self) -> str:
        return self.title


class Visit(models.Model):
    """A scheduled or completed encounter between a patient and a practitioner."""
    STATUS_SCHEDULED = 'SCHEDULED'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='visits')
    practitioner = models.ForeignKey(User, on_delete=models.CASCADE, related_name='visits')
    visit_date = models.DateField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)

    class Meta:
        indexes = [
            models.Index(fields=['practitioner', 'patient'], name='visit_practitioner_idx'),
            models.Index(fields=['patient', 'status', 'visit_date'], name='visit_patient_status_idx'),
        ]

    def __str__(self) -> str:
        return f"visit p={self.patient_id} d={self.practitioner_id} {self.visit_date} ({self.status})"


class ClinicalAlert(models.Model):
    """An alert raised by the clinical intelligence services.

    Alerts are never deleted.  Status only moves forward from ACTIVE to
    ACKNOWLEDGED or DISMISSED; see ``clinical.intelligence.lifecycle``.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='alerts')
    alert_type = models.CharField(max_length=40, choices=_choices(AlertType))
    severity = models.CharField(max_length=20, choices=_choices(AlertSeverity))
    title = models.CharField(max_length=200)
    description = models.TextField()
    source = models.CharField(max_length=200)
    trigger_value = models.CharField(max_length=200, blank=True, null=True)
    status = models.CharField(
        max_length=20, choices=_choices(AlertStatus), default=AlertStatus.ACTIVE.value, db_index=True
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    acknowledged_at = models.DateTimeField(null=True, blank=True)
    acknowledged_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='acknowledged_alerts'
    )
    dismissed_at = models.DateTimeField(null=True, blank=True)
    dismissed_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='dismissed_alerts'
    )
    dismiss_reason = models.TextField(blank=True, null=True)

    class Meta:
        indexes = [
            models.Index(fields=['patient', 'alert_type', 'status'], name='alert_patient_type_idx'),
            models.Index(fields=['status', 'severity', 'created_at'], name='alert_feed_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['patient', 'alert_type'],
                condition=Q(status=AlertStatus.ACTIVE.value)
                & Q(alert_type__in=sorted(t.value for t in RECURRING_ALERT_TYPES)),
                name='one_active_recurring_alert_per_patient',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.alert_type}/{self.severity} p={self.patient_id} ({self.status})"


class AlertDedupLock(models.Model):
    """One row per (patient, recurring alert type), locked while an alert is superseded."""
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='+')
    alert_type = models.CharField(max_length=40, choices=_choices(AlertType))

    class Meta:
        unique_together = [('patient', 'alert_type')]

    def __str__(self) -> str:
        return f"lock {self.alert_type} p={self.patient_id}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    patient_id = models.CharField(max_length=14, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.object_type}/{self.object_id}@{self.created_at:%F %T}"
