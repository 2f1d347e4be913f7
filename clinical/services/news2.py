import logging
from typing import Optional

from clinical.intelligence import news2
from clinical.intelligence.lifecycle import AlertSeverity, AlertType
from clinical.intelligence.news2 import EarlyWarningResult, RiskLevel
from clinical.services import alerts
from clinical.services.records import get_patient_or_404, latest_vitals

logger = logging.getLogger(__name__)

SOURCE = 'News2Service'

# risk level -> (alert type, severity, title prefix)
ALERTING_LEVELS = {
    RiskLevel.HIGH: (AlertType.NEWS2_CRITICAL, AlertSeverity.CRITICAL, 'NEWS2 Critical Risk'),
    RiskLevel.MEDIUM: (AlertType.NEWS2_HIGH, AlertSeverity.WARNING, 'NEWS2 Elevated Risk'),
}


def current_score(patient_id: str) -> EarlyWarningResult:
    """Score the patient's latest vitals without raising alerts."""
    vitals = latest_vitals(patient_id)
    return news2.score(vitals.to_snapshot() if vitals else None)


def score_patient(patient_id: str, *, actor=None) -> EarlyWarningResult:
    """Score the patient's latest vitals and raise a NEWS2 alert for MEDIUM or HIGH risk.

    A new NEWS2 alert replaces the patient's ACTIVE one of the same type.
    """
    get_patient_or_404(patient_id)
    result = current_score(patient_id)
    _maybe_alert(patient_id, result, actor)
    return result


def _maybe_alert(patient_id: str, result: EarlyWarningResult, actor) -> Optional[object]:
    level = ALERTING_LEVELS.get(result.risk_level)
    if level is None:
        return None
    alert_type, severity, label = level
    logger.info('NEWS2 %s for patient %s (score %s)', result.risk_level.value, patient_id, result.total_score)
    return alerts.create_alert(
        patient_id,
        alert_type,
        severity,
        f'{label} (Score {result.total_score})',
        f'Patient NEWS2 score is {result.total_score} — {result.recommendation}',
        SOURCE,
        trigger_value=result.total_score,
        actor=actor,
    )
