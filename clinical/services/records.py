"""
Read-only access to patient records owned by the wider hospital system.

These helpers are the only place the clinical services query patients,
vitals, medications, allergies, problems and visits.
"""
from typing import Optional, Dict, List
from django.db.models import Count, Max, Q
from rest_framework.exceptions import NotFound

from clinical.models import (
    ClinicalAlert, Patient, PatientAllergy, PatientMedication, PatientVitals, Visit,
)
from clinical.intelligence.lifecycle import AlertSeverity, AlertStatus


def get_patient_or_404(patient_id: str) -> Patient:
    patient = Patient.objects.filter(pk=patient_id).first()
    if not patient:
        raise NotFound(f'Patient not found: {patient_id}')
    return patient


def latest_vitals(patient_id: str) -> Optional[PatientVitals]:
    return PatientVitals.objects.filter(patient_id=patient_id).order_by('-recorded_at', '-id').first()


def active_medication_names(patient_id: str) -> List[str]:
    return list(
        PatientMedication.objects.filter(patient_id=patient_id, status=PatientMedication.STATUS_ACTIVE)
        .order_by('id').values_list('medication_name', flat=True)
    )


def active_allergy_substances(patient_id: str) -> List[str]:
    return list(
        PatientAllergy.objects.filter(patient_id=patient_id, active=True)
        .order_by('id').values_list('substance', flat=True)
    )


def patient_ids_in_scope(practitioner_id: Optional[int] = None) -> List[str]:
    """All active patients, or every patient with at least one visit under ``practitioner_id``."""
    if practitioner_id is not None:
        qs = Patient.objects.filter(visits__practitioner_id=practitioner_id).distinct()
    else:
        qs = Patient.objects.filter(status=Patient.STATUS_ACTIVE)
    return list(qs.order_by('patient_id').values_list('patient_id', flat=True))


def active_alert_counts(patient_ids: List[str]) -> Dict[str, dict]:
    rows = (
        ClinicalAlert.objects.filter(patient_id__in=patient_ids, status=AlertStatus.ACTIVE.value)
        .values('patient_id')
        .annotate(
            active=Count('id'),
            critical=Count('id', filter=Q(severity=AlertSeverity.CRITICAL.value)),
            warning=Count('id', filter=Q(severity=AlertSeverity.WARNING.value)),
        )
    )
    return {r['patient_id']: r for r in rows}


def record_counts(patient_ids: List[str]) -> Dict[str, dict]:
    rows = (
        Patient.objects.filter(pk__in=patient_ids)
        .annotate(
            medications_active=Count(
                'medications', filter=Q(medications__status=PatientMedication.STATUS_ACTIVE), distinct=True
            ),
            problems_active=Count('problems', filter=Q(problems__status='ACTIVE'), distinct=True),
            allergies_active=Count('allergies', filter=Q(allergies__active=True), distinct=True),
        )
        .values('patient_id', 'medications_active', 'problems_active', 'allergies_active')
    )
    return {r['patient_id']: r for r in rows}


def visit_summaries(patient_ids: List[str]) -> Dict[str, dict]:
    rows = (
        Visit.objects.filter(patient_id__in=patient_ids)
        .values('patient_id')
        .annotate(
            total=Count('id'),
            last_completed=Max('visit_date', filter=Q(status=Visit.STATUS_COMPLETED)),
        )
    )
    return {r['patient_id']: r for r in rows}
