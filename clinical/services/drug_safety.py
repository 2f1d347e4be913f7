import logging
from typing import Iterable, Optional

from django.apps import apps

from clinical.intelligence.lifecycle import AlertSeverity
from clinical.intelligence.safety import DrugSafetyEvaluator, InteractionSummary, SafetyVerdict
from clinical.services import alerts
from clinical.services.audit import log_action
from clinical.services.records import (
    active_allergy_substances, active_medication_names, get_patient_or_404,
)

logger = logging.getLogger(__name__)

SOURCE = 'DrugSafetyEvaluator'


def get_evaluator() -> DrugSafetyEvaluator:
    """The evaluator built once at app start-up (see ``ClinicalConfig.ready``)."""
    return apps.get_app_config('clinical').evaluator


def evaluate_drug_safety(patient_id: str, candidate_drug: str, active_medications: Iterable[str],
                         active_allergies: Iterable[str], *, actor=None,
                         evaluator: Optional[DrugSafetyEvaluator] = None) -> SafetyVerdict:
    """Evaluate a candidate drug and raise a CRITICAL alert when the verdict warrants one.

    MODERATE-only interactions are reported in the verdict but never alert.
    """
    evaluator = evaluator or get_evaluator()
    verdict = evaluator.evaluate(candidate_drug, active_medications, active_allergies)
    if verdict.alert_worthy:
        logger.info('drug safety alert for patient %s: %s (%s)', patient_id, candidate_drug,
                    verdict.alert_type.value)
        alerts.create_alert(
            patient_id,
            verdict.alert_type,
            AlertSeverity.CRITICAL,
            f'Drug Safety Alert: {candidate_drug}',
            verdict.alert_description(),
            SOURCE,
            trigger_value=candidate_drug,
            actor=actor,
        )
    return verdict


def check_drug_for_patient(patient_id: str, drug: str, *, actor=None) -> SafetyVerdict:
    get_patient_or_404(patient_id)
    verdict = evaluate_drug_safety(
        patient_id, drug,
        active_medication_names(patient_id),
        active_allergy_substances(patient_id),
        actor=actor,
    )
    log_action(user=actor, action='drug_check', object_type='patient', object_id=patient_id,
               patient_id=patient_id, detail={'drug': drug, 'safe': verdict.safe})
    return verdict


def summarize_interactions(patient_id: str, *, evaluator: Optional[DrugSafetyEvaluator] = None) -> InteractionSummary:
    get_patient_or_404(patient_id)
    evaluator = evaluator or get_evaluator()
    return evaluator.summarize(
        active_medication_names(patient_id),
        active_allergy_substances(patient_id),
        patient_id=patient_id,
    )
