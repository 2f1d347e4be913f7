"""
Clinical alert vocabulary and status transitions.

Status changes are computed by :func:`transition`, a pure function over an
explicit table of allowed source states.  Persisting the new state is the
caller's job (see ``clinical.services.alerts``).

    ACTIVE --acknowledge--> ACKNOWLEDGED
    ACTIVE --dismiss------> DISMISSED
    ACTIVE --supersede----> DISMISSED

ACKNOWLEDGED and DISMISSED are terminal.
"""
from __future__ import annotations

from enum import Enum


class AlertType(str, Enum):
    LAB_CRITICAL = 'LAB_CRITICAL'
    LAB_ABNORMAL = 'LAB_ABNORMAL'
    NEWS2_CRITICAL = 'NEWS2_CRITICAL'
    NEWS2_HIGH = 'NEWS2_HIGH'
    DRUG_INTERACTION = 'DRUG_INTERACTION'
    ALLERGY_CONTRAINDICATION = 'ALLERGY_CONTRAINDICATION'


class AlertSeverity(str, Enum):
    WARNING = 'WARNING'
    CRITICAL = 'CRITICAL'


class AlertStatus(str, Enum):
    ACTIVE = 'ACTIVE'
    ACKNOWLEDGED = 'ACKNOWLEDGED'
    DISMISSED = 'DISMISSED'


class AlertAction(str, Enum):
    ACKNOWLEDGE = 'ACKNOWLEDGE'
    DISMISS = 'DISMISS'
    SUPERSEDE = 'SUPERSEDE'


# Types whose fresh alert replaces the patient's current ACTIVE one
RECURRING_ALERT_TYPES = frozenset({AlertType.NEWS2_HIGH, AlertType.NEWS2_CRITICAL})

SUPERSEDED_REASON = 'Auto-dismissed — replaced by updated score'

TRANSITIONS: dict[AlertAction, tuple[frozenset, AlertStatus]] = {
    AlertAction.ACKNOWLEDGE: (frozenset({AlertStatus.ACTIVE}), AlertStatus.ACKNOWLEDGED),
    AlertAction.DISMISS: (frozenset({AlertStatus.ACTIVE}), AlertStatus.DISMISSED),
    AlertAction.SUPERSEDE: (frozenset({AlertStatus.ACTIVE}), AlertStatus.DISMISSED),
}


class InvalidTransition(Exception):
    def __init__(self, current: AlertStatus, action: AlertAction):
        self.current = current
        self.action = action
        super().__init__(f'cannot {action.value.lower()} an alert in status {current.value}')


def is_recurring(alert_type) -> bool:
    return AlertType(alert_type) in RECURRING_ALERT_TYPES


def is_terminal(status) -> bool:
    return not any(AlertStatus(status) in sources for sources, _ in TRANSITIONS.values())


def transition(current, action) -> AlertStatus:
    """Return the status reached by applying ``action`` to ``current``.

    Raises :class:`InvalidTransition` when ``current`` is not an allowed
    source state for ``action``.
    """
    current = AlertStatus(current)
    action = AlertAction(action)
    sources, target = TRANSITIONS[action]
    if current not in sources:
        raise InvalidTransition(current, action)
    return target
