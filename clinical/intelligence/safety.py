"""
Drug safety evaluation: interaction knowledge base + allergy resolver.

The evaluator only computes verdicts.  Raising clinical alerts for
alert-worthy verdicts is done by ``clinical.services.drug_safety``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Sequence

from django.utils import timezone

from .allergies import AllergyCrossReactivityResolver
from .interactions import DrugInteractionKnowledgeBase, InteractionRecord, normalize_drug_name
from .lifecycle import AlertType


@dataclass(frozen=True)
class SafetyVerdict:
    candidate_drug: str
    interactions: tuple[InteractionRecord, ...]
    allergy_contraindications: tuple[str, ...]
    checked_at: Optional[datetime] = None

    @property
    def safe(self) -> bool:
        return not self.interactions and not self.allergy_contraindications

    @property
    def alerting_interactions(self) -> list[InteractionRecord]:
        return [i for i in self.interactions if i.severity.triggers_alert]

    @property
    def alert_worthy(self) -> bool:
        return bool(self.alerting_interactions) or bool(self.allergy_contraindications)

    @property
    def alert_type(self) -> Optional[AlertType]:
        if not self.alert_worthy:
            return None
        if self.allergy_contraindications:
            return AlertType.ALLERGY_CONTRAINDICATION
        return AlertType.DRUG_INTERACTION

    def alert_description(self) -> str:
        parts = [f'Drug safety check for {self.candidate_drug}:']
        if self.interactions:
            parts.append(f'{len(self.alerting_interactions)} major/contraindicated interaction(s) detected.')
        if self.allergy_contraindications:
            parts.append(f'{len(self.allergy_contraindications)} allergy contraindication(s) detected.')
        return ' '.join(parts)

    def as_dict(self) -> dict:
        return {
            'drugName': self.candidate_drug,
            'interactions': [i.as_dict() for i in self.interactions],
            'allergyContraindications': list(self.allergy_contraindications),
            'safe': self.safe,
            'checkedAt': self.checked_at.isoformat() if self.checked_at else None,
        }


@dataclass(frozen=True)
class InteractionSummary:
    interactions: tuple[InteractionRecord, ...]
    allergy_contraindications: tuple[str, ...]
    checked_at: Optional[datetime] = None
    patient_id: Optional[str] = None

    @property
    def safe(self) -> bool:
        # MODERATE-only findings are reported but do not make the regimen unsafe
        return (
            not any(i.severity.triggers_alert for i in self.interactions)
            and not self.allergy_contraindications
        )

    def as_dict(self) -> dict:
        return {
            'patientId': self.patient_id,
            'interactions': [i.as_dict() for i in self.interactions],
            'allergyContraindications': list(self.allergy_contraindications),
            'safe': self.safe,
            'checkedAt': self.checked_at.isoformat() if self.checked_at else None,
        }


@dataclass
class DrugSafetyEvaluator:
    knowledge_base: DrugInteractionKnowledgeBase
    resolver: AllergyCrossReactivityResolver = field(default_factory=AllergyCrossReactivityResolver.default)

    def evaluate(self, candidate_drug: str, active_medications: Iterable[str],
                 active_allergies: Iterable[str]) -> SafetyVerdict:
        """Check ``candidate_drug`` against a patient's active medications and allergies.

        Medication and allergy names are passed as recorded; they are
        normalized here.  Unknown drug names simply produce no findings.
        """
        drug = normalize_drug_name(candidate_drug)
        interactions = []
        for med in active_medications:
            hit = self.knowledge_base.lookup(drug, normalize_drug_name(med))
            if hit is not None:
                interactions.append(hit)
        contraindications = [
            f'Allergy to {substance} (cross-reaction with {candidate_drug})'
            for substance in active_allergies
            if self.resolver.is_contraindicated(drug, normalize_drug_name(substance))
        ]
        return SafetyVerdict(
            candidate_drug=candidate_drug,
            interactions=tuple(interactions),
            allergy_contraindications=tuple(contraindications),
            checked_at=timezone.now(),
        )

    def summarize(self, active_medications: Sequence[str], active_allergies: Sequence[str],
                  patient_id: Optional[str] = None) -> InteractionSummary:
        """Cross-check every active medication pair and every medication/allergy pair."""
        meds = list(active_medications)
        normalized = [normalize_drug_name(m) for m in meds]
        # dict keeps insertion order and drops repeats
        found: dict[tuple[str, str], InteractionRecord] = {}
        for i in range(len(normalized)):
            for j in range(i + 1, len(normalized)):
                hit = self.knowledge_base.lookup(normalized[i], normalized[j])
                if hit is not None:
                    found.setdefault(hit.pair, hit)

        contraindications = []
        for med, norm_med in zip(meds, normalized):
            for substance in active_allergies:
                if self.resolver.is_contraindicated(norm_med, normalize_drug_name(substance)):
                    contraindications.append(
                        f'Patient allergic to {substance} — cross-reaction risk with {med}'
                    )
        return InteractionSummary(
            interactions=tuple(found.values()),
            allergy_contraindications=tuple(contraindications),
            checked_at=timezone.now(),
            patient_id=patient_id,
        )
