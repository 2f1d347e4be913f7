"""
Risk ordering and in-memory pagination for the patient risk dashboard.

Order (most dangerous first):

1. active CRITICAL alert count, descending
2. NEWS2 score, descending; a missing score sorts below every real score
3. active WARNING alert count, descending

``sorted`` is stable, so remaining ties keep the order the scope was
iterated in.  The whole scope is sorted before a page is sliced off.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Generic, Iterable, Optional, TypeVar

T = TypeVar('T')


@dataclass(frozen=True)
class PatientRiskRow:
    patient_id: str
    patient_name: str
    blood_group: Optional[str]
    news2_score: Optional[int]
    news2_risk_level: str
    news2_risk_colour: Optional[str]
    critical_alert_count: int = 0
    warning_alert_count: int = 0
    active_medication_count: int = 0
    active_problem_count: int = 0
    active_allergy_count: int = 0
    last_vitals_at: Optional[datetime] = None
    last_visit_date: Optional[date] = None
    total_visit_count: int = 0

    def as_dict(self) -> dict:
        return {
            'patientId': self.patient_id,
            'patientName': self.patient_name,
            'bloodGroup': self.blood_group,
            'news2Score': self.news2_score,
            'news2RiskLevel': self.news2_risk_level,
            'news2RiskColour': self.news2_risk_colour,
            'criticalAlertCount': self.critical_alert_count,
            'warningAlertCount': self.warning_alert_count,
            'activeMedicationCount': self.active_medication_count,
            'activeProblemCount': self.active_problem_count,
            'activeAllergyCount': self.active_allergy_count,
            'lastVitalsAt': self.last_vitals_at.isoformat() if self.last_vitals_at else None,
            'lastVisitDate': self.last_visit_date.isoformat() if self.last_visit_date else None,
            'totalVisitCount': self.total_visit_count,
        }


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    def as_dict(self, serialize=lambda x: x.as_dict()) -> dict:
        return {
            'data': [serialize(i) for i in self.items],
            'pagination': {
                'total': self.total,
                'page': self.page,
                'pageSize': self.page_size,
                'pages': self.pages,
            },
        }


def risk_sort_key(row: PatientRiskRow) -> tuple:
    # (False, -score) sorts before (True, 0): real scores always above missing ones
    missing = row.news2_score is None
    return (
        -row.critical_alert_count,
        missing,
        0 if missing else -row.news2_score,
        -row.warning_alert_count,
    )


def sort_rows(rows: Iterable[PatientRiskRow]) -> list[PatientRiskRow]:
    return sorted(rows, key=risk_sort_key)


def paginate(items: list, page: int, page_size: int) -> Page:
    """Slice a fully ordered list.  ``page`` is 1-based."""
    page = max(1, int(page or 1))
    page_size = max(1, int(page_size or 1))
    start = (page - 1) * page_size
    return Page(items=items[start:start + page_size], total=len(items), page=page, page_size=page_size)
