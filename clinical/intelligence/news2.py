"""
NHS NEWS2 (National Early Warning Score 2) calculator.

Scoring tables follow the Royal College of Physicians NEWS2 chart (2017),
SpO2 scale 1.  Consciousness is not captured in the vitals record so it is
always contributed as ALERT with a score of 0.

Everything in this module is pure: the caller hands in a
:class:`VitalsSnapshot` (or ``None``) and receives a fresh
:class:`EarlyWarningResult`.  Nothing is cached and nothing is mutated.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional, Union

from django.utils import timezone


class RiskLevel(str, Enum):
    LOW = 'LOW'
    LOW_MEDIUM = 'LOW_MEDIUM'
    MEDIUM = 'MEDIUM'
    HIGH = 'HIGH'
    NO_DATA = 'NO_DATA'


RISK_COLOURS = {
    RiskLevel.LOW: 'green',
    RiskLevel.LOW_MEDIUM: 'yellow',
    RiskLevel.MEDIUM: 'orange',
    RiskLevel.HIGH: 'red',
}

RECOMMENDATIONS = {
    RiskLevel.LOW: 'Routine ward monitoring',
    RiskLevel.LOW_MEDIUM: 'Monitoring every 4–6 hours',
    RiskLevel.MEDIUM: 'Urgent review within 1 hour',
    RiskLevel.HIGH: 'Emergency clinical assessment required immediately',
}

NO_DATA_MESSAGE = 'No vitals on record'


@dataclass(frozen=True)
class VitalsSnapshot:
    """A single set of observations.  Every field may be absent."""
    respiratory_rate: Optional[int] = None
    oxygen_saturation: Optional[int] = None
    systolic_bp: Optional[int] = None
    heart_rate: Optional[int] = None
    temperature: Optional[Decimal] = None
    vitals_id: Optional[int] = None
    recorded_at: Optional[datetime] = None


@dataclass(frozen=True)
class ComponentScore:
    parameter: str
    value: Optional[str]
    score: int
    unit: Optional[str]
    defaulted: bool


@dataclass(frozen=True)
class EarlyWarningResult:
    """Computed NEWS2 result.

    When ``risk_level`` is ``NO_DATA`` all numeric and derived fields are
    ``None`` and ``message`` says why no score could be computed.
    """
    total_score: Optional[int]
    risk_level: RiskLevel
    risk_colour: Optional[str]
    recommendation: Optional[str]
    components: tuple[ComponentScore, ...] = ()
    based_on_vitals_id: Optional[int] = None
    computed_at: Optional[datetime] = None
    message: Optional[str] = None
    any_three: bool = False

    @property
    def has_score(self) -> bool:
        return self.risk_level is not RiskLevel.NO_DATA

    def as_dict(self) -> dict:
        return {
            'totalScore': self.total_score,
            'riskLevel': self.risk_level.value,
            'riskColour': self.risk_colour,
            'recommendation': self.recommendation,
            'components': [
                {
                    'parameter': c.parameter,
                    'value': c.value,
                    'score': c.score,
                    'unit': c.unit,
                    'defaulted': c.defaulted,
                }
                for c in self.components
            ],
            'basedOnVitalsId': self.based_on_vitals_id,
            'computedAt': self.computed_at.isoformat() if self.computed_at else None,
            'message': self.message,
        }


# ---------------------------------------------------------------------------
# Scoring tables
# ---------------------------------------------------------------------------

def score_respiratory_rate(rr: int) -> int:
    if rr <= 8:
        return 3
    if rr <= 11:
        return 1
    if rr <= 20:
        return 0
    if rr <= 24:
        return 2
    return 3


def score_oxygen_saturation(spo2: int) -> int:
    if spo2 <= 91:
        return 3
    if spo2 <= 93:
        return 2
    if spo2 <= 95:
        return 1
    return 0


def score_systolic_bp(sbp: int) -> int:
    if sbp <= 90:
        return 3
    if sbp <= 100:
        return 2
    if sbp <= 110:
        return 1
    if sbp <= 219:
        return 0
    return 3


def score_heart_rate(hr: int) -> int:
    if hr <= 40:
        return 3
    if hr <= 50:
        return 1
    if hr <= 90:
        return 0
    if hr <= 110:
        return 1
    if hr <= 130:
        return 2
    return 3


def score_temperature(temp: Union[Decimal, int, float, str]) -> int:
    # Decimal comparison keeps 35.0 / 36.0 / 38.0 / 39.0 exact
    t = Decimal(str(temp))
    if t <= Decimal('35.0'):
        return 3
    if t <= Decimal('36.0'):
        return 1
    if t <= Decimal('38.0'):
        return 0
    if t <= Decimal('39.0'):
        return 1
    return 2


# (parameter, snapshot attribute, unit, scoring function), in report order
PARAMETERS: tuple[tuple[str, str, str, Callable[..., int]], ...] = (
    ('RESPIRATORY_RATE', 'respiratory_rate', 'breaths/min', score_respiratory_rate),
    ('SPO2', 'oxygen_saturation', '%', score_oxygen_saturation),
    ('SYSTOLIC_BP', 'systolic_bp', 'mmHg', score_systolic_bp),
    ('HEART_RATE', 'heart_rate', 'bpm', score_heart_rate),
    ('TEMPERATURE', 'temperature', '°C', score_temperature),
)


def classify_risk(total: int, any_three: bool) -> RiskLevel:
    if total == 0:
        return RiskLevel.LOW
    if total <= 4:
        return RiskLevel.MEDIUM if any_three else RiskLevel.LOW_MEDIUM
    if total <= 6:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def _format_value(value) -> str:
    if isinstance(value, Decimal):
        return format(value, 'f')
    return str(value)


def no_data_result(now: Optional[datetime] = None) -> EarlyWarningResult:
    return EarlyWarningResult(
        total_score=None,
        risk_level=RiskLevel.NO_DATA,
        risk_colour=None,
        recommendation=None,
        components=(),
        based_on_vitals_id=None,
        computed_at=now or timezone.now(),
        message=NO_DATA_MESSAGE,
    )


def score(snapshot: Optional[VitalsSnapshot], now: Optional[datetime] = None) -> EarlyWarningResult:
    """Compute the NEWS2 score for ``snapshot``.

    ``None`` yields a ``NO_DATA`` result.  A snapshot with at least one
    populated parameter always yields a real risk level; absent parameters
    score 0 and are flagged ``defaulted``.
    """
    if snapshot is None:
        return no_data_result(now)

    components: list[ComponentScore] = []
    total = 0
    any_three = False
    for parameter, attr, unit, fn in PARAMETERS:
        value = getattr(snapshot, attr)
        if value is None:
            components.append(ComponentScore(parameter, None, 0, unit, True))
            continue
        s = fn(value)
        components.append(ComponentScore(parameter, _format_value(value), s, unit, False))
        total += s
        if s == 3:
            any_three = True

    components.append(ComponentScore('CONSCIOUSNESS', 'ALERT', 0, None, True))

    level = classify_risk(total, any_three)
    return EarlyWarningResult(
        total_score=total,
        risk_level=level,
        risk_colour=RISK_COLOURS[level],
        recommendation=RECOMMENDATIONS[level],
        components=tuple(components),
        based_on_vitals_id=snapshot.vitals_id,
        computed_at=now or timezone.now(),
        message=None,
        any_three=any_three,
    )
