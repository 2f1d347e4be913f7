"""
Patient risk dashboard: a ranked, paginated view over every patient in scope.

Alert, record and visit counts are fetched in batch; NEWS2 is scored per
patient from their latest vitals.  Ranking and slicing are done in memory by
``clinical.intelligence.ranking`` after the full scope is assembled.
"""
from typing import Optional, Dict, List

from django.conf import settings
from django.db.models import Count, OuterRef, Q, Subquery
from django.utils import timezone

from clinical.intelligence import news2
from clinical.intelligence.lifecycle import AlertSeverity, AlertStatus, AlertType
from clinical.intelligence.ranking import Page, PatientRiskRow, paginate, sort_rows
from clinical.models import ClinicalAlert, Patient, PatientVitals
from clinical.services.records import (
    active_alert_counts, patient_ids_in_scope, record_counts, visit_summaries,
)


def latest_vitals_for(patient_ids: List[str]) -> Dict[str, PatientVitals]:
    newest = (
        PatientVitals.objects.filter(patient_id=OuterRef('patient_id'))
        .order_by('-recorded_at', '-id').values('id')[:1]
    )
    ids = (
        Patient.objects.filter(pk__in=patient_ids)
        .annotate(vitals_id=Subquery(newest)).exclude(vitals_id=None)
        .values_list('vitals_id', flat=True)
    )
    return {v.patient_id: v for v in PatientVitals.objects.filter(pk__in=list(ids))}


def build_rows(patient_ids: List[str]) -> List[PatientRiskRow]:
    patients = Patient.objects.in_bulk(patient_ids)
    alerts = active_alert_counts(patient_ids)
    records = record_counts(patient_ids)
    visits = visit_summaries(patient_ids)
    vitals = latest_vitals_for(patient_ids)

    rows = []
    for pid in patient_ids:
        patient = patients.get(pid)
        if patient is None:
            continue
        v = vitals.get(pid)
        result = news2.score(v.to_snapshot() if v else None)
        a = alerts.get(pid, {})
        r = records.get(pid, {})
        vs = visits.get(pid, {})
        rows.append(PatientRiskRow(
            patient_id=pid,
            patient_name=patient.full_name,
            blood_group=patient.blood_group or None,
            news2_score=result.total_score,
            news2_risk_level=result.risk_level.value,
            news2_risk_colour=result.risk_colour,
            critical_alert_count=a.get('critical', 0),
            warning_alert_count=a.get('warning', 0),
            active_medication_count=r.get('medications_active', 0),
            active_problem_count=r.get('problems_active', 0),
            active_allergy_count=r.get('allergies_active', 0),
            last_vitals_at=v.recorded_at if v else None,
            last_visit_date=vs.get('last_completed'),
            total_visit_count=vs.get('total', 0),
        ))
    return rows


def rank_patients(*, practitioner_id: Optional[int] = None, page: int = 1, page_size: int = 20) -> Page:
    """Rank every patient in scope by risk and return one page.

    Without ``practitioner_id`` the scope is all ACTIVE patients; with it,
    every patient who has at least one visit under that practitioner.
    """
    page_size = min(settings.CLINICAL_PAGE_SIZE_MAX, max(1, int(page_size or settings.CLINICAL_PAGE_SIZE_DEFAULT)))
    rows = sort_rows(build_rows(patient_ids_in_scope(practitioner_id)))
    return paginate(rows, page, page_size)


def dashboard_stats() -> dict:
    active = ClinicalAlert.objects.filter(status=AlertStatus.ACTIVE.value)
    totals = active.aggregate(
        total=Count('id'),
        critical=Count('id', filter=Q(severity=AlertSeverity.CRITICAL.value)),
        warning=Count('id', filter=Q(severity=AlertSeverity.WARNING.value)),
    )
    by_type = {t.value: 0 for t in AlertType}
    for row in active.values('alert_type').annotate(n=Count('id')):
        by_type[row['alert_type']] = row['n']
    return {
        'totalActivePatients': Patient.objects.filter(status=Patient.STATUS_ACTIVE).count(),
        'patientsWithCriticalAlerts': active.filter(severity=AlertSeverity.CRITICAL.value)
        .values('patient_id').distinct().count(),
        'patientsWithNews2Critical': active.filter(alert_type=AlertType.NEWS2_CRITICAL.value)
        .values('patient_id').distinct().count(),
        'totalActiveAlerts': totals['total'],
        'criticalAlerts': totals['critical'],
        'warningAlerts': totals['warning'],
        'alertsByType': by_type,
        'generatedAt': timezone.now().isoformat(),
    }
