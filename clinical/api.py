"""
Public entry points of the clinical intelligence core.

Callers outside this app (other hospital services, management commands,
scripts) should go through these functions rather than the service
modules.  Everything here takes and returns plain values: strings,
numbers, dicts and the frozen result dataclasses from
``clinical.intelligence``.
"""
from typing import Iterable, Optional

from clinical.intelligence import news2
from clinical.intelligence.news2 import EarlyWarningResult, VitalsSnapshot
from clinical.intelligence.ranking import Page
from clinical.intelligence.safety import InteractionSummary, SafetyVerdict
from clinical.services import alerts as _alerts
from clinical.services import drug_safety as _drug_safety
from clinical.services import risk_dashboard as _risk_dashboard

__all__ = [
    'score_vitals',
    'evaluate_drug_safety',
    'summarize_interactions',
    'create_alert',
    'acknowledge_alert',
    'dismiss_alert',
    'list_alerts',
    'rank_patients',
]


def score_vitals(vitals: Optional[VitalsSnapshot]) -> EarlyWarningResult:
    return news2.score(vitals)


def evaluate_drug_safety(patient_id: str, candidate_drug: str, active_medications: Iterable[str],
                         active_allergies: Iterable[str], *, actor=None) -> SafetyVerdict:
    return _drug_safety.evaluate_drug_safety(
        patient_id, candidate_drug, active_medications, active_allergies, actor=actor,
    )


def summarize_interactions(patient_id: str) -> InteractionSummary:
    return _drug_safety.summarize_interactions(patient_id)


def create_alert(patient_id: str, alert_type: str, severity: str, title: str, description: str, source: str,
                 trigger_value=None, *, actor=None) -> dict:
    """Raise an alert from plain values; type and severity are case-insensitive."""
    alert = _alerts.create_alert(
        patient_id, alert_type.upper(), severity.upper(), title, description, source, trigger_value, actor=actor,
    )
    return _alerts.format_alert(alert)


def acknowledge_alert(alert_id, actor) -> dict:
    return _alerts.format_alert(_alerts.acknowledge_alert(alert_id, actor))


def dismiss_alert(alert_id, reason: str, actor) -> dict:
    return _alerts.format_alert(_alerts.dismiss_alert(alert_id, reason, actor))


def list_alerts(patient_id: Optional[str] = None, *, status: Optional[str] = None,
                severity: Optional[str] = None, practitioner_id: Optional[int] = None,
                page: int = 1, page_size: int = 20):
    """One patient's alerts, or the cross-patient feed when ``patient_id`` is omitted.

    Returns ``(items, total)``.
    """
    if patient_id is not None:
        return _alerts.list_patient_alerts(
            patient_id, status=status, severity=severity, page=page, page_size=page_size,
        )
    return _alerts.list_alert_feed(
        status=status, severity=severity, practitioner_id=practitioner_id, page=page, page_size=page_size,
    )


def rank_patients(*, practitioner_id: Optional[int] = None, page: int = 1, page_size: int = 20) -> Page:
    return _risk_dashboard.rank_patients(practitioner_id=practitioner_id, page=page, page_size=page_size)
