"""
Clinical alert lifecycle: create, supersede, acknowledge, dismiss, list.

Recurring alert types (NEWS2) keep at most one ACTIVE alert per patient.
Creating a new one dismisses the previous ACTIVE alert of the same type
inside the same transaction, serialized per (patient, alert type) by a
locked ``AlertDedupLock`` row.  SQLite ignores ``select_for_update`` so a
process-local striped lock keyed on the same pair covers that backend as well.
"""
import html
import logging
import threading
import uuid
from typing import Optional, Tuple, List

import bleach
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from clinical.exceptions import AlertStateConflict
from clinical.intelligence.lifecycle import (
    SUPERSEDED_REASON, AlertAction, AlertSeverity, AlertStatus, AlertType, InvalidTransition,
    is_recurring, transition,
)
from clinical.models import AlertDedupLock, ClinicalAlert
from clinical.services.audit import log_action
from clinical.services.records import get_patient_or_404, patient_ids_in_scope

logger = logging.getLogger(__name__)

User = get_user_model()

ALERT_GROUP = 'alerts'
DISMISS_REASON_MAX = 1000

LAB_CRITICAL_FLAGS = frozenset({'CRITICAL_LOW', 'CRITICAL_HIGH'})
LAB_ABNORMAL_FLAGS = frozenset({'LOW', 'HIGH'})

KEY_LOCK_STRIPES = 64
# fixed pool; unrelated keys may share a stripe
_key_locks = tuple(threading.Lock() for _ in range(KEY_LOCK_STRIPES))


def _key_lock(patient_id: str, alert_type: AlertType) -> threading.Lock:
    return _key_locks[hash((patient_id, alert_type.value)) % KEY_LOCK_STRIPES]


def format_alert(alert: ClinicalAlert, *, with_patient: bool = False) -> dict:
    data = {
        'id': str(alert.id),
        'patientId': alert.patient_id,
        'alertType': alert.alert_type,
        'severity': alert.severity,
        'title': alert.title,
        'description': alert.description,
        'source': alert.source,
        'triggerValue': alert.trigger_value,
        'status': alert.status,
        'createdAt': alert.created_at.isoformat() if alert.created_at else None,
        'acknowledgedAt': alert.acknowledged_at.isoformat() if alert.acknowledged_at else None,
        'acknowledgedBy': alert.acknowledged_by_id,
        'dismissedAt': alert.dismissed_at.isoformat() if alert.dismissed_at else None,
        'dismissedBy': alert.dismissed_by_id,
        'dismissReason': alert.dismiss_reason,
    }
    if with_patient:
        data['patientName'] = alert.patient.full_name
    return data


def _broadcast(alert: ClinicalAlert, event: str):
    if not getattr(settings, 'CLINICAL_ALERT_BROADCAST', True):
        return
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    payload = {'type': 'alert.changed', 'event': event, 'alert': format_alert(alert)}
    # subscribers only hear about committed state
    transaction.on_commit(lambda: async_to_sync(channel_layer.group_send)(ALERT_GROUP, payload))


def _actor_or_none(actor) -> Optional[User]:
    return actor if isinstance(actor, User) and getattr(actor, 'pk', None) else None


def _apply(alert: ClinicalAlert, action: AlertAction, *, actor=None, reason: Optional[str] = None):
    new_status = transition(alert.status, action)
    now = timezone.now()
    alert.status = new_status.value
    if new_status is AlertStatus.ACKNOWLEDGED:
        alert.acknowledged_at = now
        alert.acknowledged_by = _actor_or_none(actor)
        fields = ['status', 'acknowledged_at', 'acknowledged_by']
    else:
        alert.dismissed_at = now
        alert.dismissed_by = _actor_or_none(actor)
        alert.dismiss_reason = reason
        fields = ['status', 'dismissed_at', 'dismissed_by', 'dismiss_reason']
    alert.save(update_fields=fields)
    return alert


def _supersede_active(patient_id: str, alert_type: AlertType) -> List[ClinicalAlert]:
    superseded = []
    qs = ClinicalAlert.objects.select_for_update().filter(
        patient_id=patient_id, alert_type=alert_type.value, status=AlertStatus.ACTIVE.value,
    )
    for existing in qs:
        _apply(existing, AlertAction.SUPERSEDE, reason=SUPERSEDED_REASON)
        logger.info('superseded alert %s (%s) for patient %s', existing.id, alert_type.value, patient_id)
        superseded.append(existing)
    return superseded


def _insert(patient, alert_type, severity, title, description, source, trigger_value) -> ClinicalAlert:
    return ClinicalAlert.objects.create(
        patient=patient,
        alert_type=alert_type.value,
        severity=severity.value,
        title=title,
        description=description,
        source=source,
        trigger_value=None if trigger_value is None else str(trigger_value),
        status=AlertStatus.ACTIVE.value,
    )


def create_alert(patient_id: str, alert_type, severity, title: str, description: str, source: str,
                 trigger_value=None, *, actor=None) -> ClinicalAlert:
    """Persist a new ACTIVE alert.

    For NEWS2 alert types any ACTIVE alert of the same type for the patient is
    dismissed first with reason ``SUPERSEDED_REASON``; both writes commit
    together.  ACKNOWLEDGED alerts are left as they are.
    """
    alert_type = AlertType(alert_type)
    severity = AlertSeverity(severity)

    superseded = []
    if is_recurring(alert_type):
        with _key_lock(str(patient_id), alert_type), transaction.atomic():
            patient = get_patient_or_404(patient_id)
            AlertDedupLock.objects.get_or_create(patient=patient, alert_type=alert_type.value)
            AlertDedupLock.objects.select_for_update().get(patient=patient, alert_type=alert_type.value)
            superseded = _supersede_active(patient.pk, alert_type)
            alert = _insert(patient, alert_type, severity, title, description, source, trigger_value)
            _record(alert, superseded, actor)
    else:
        with transaction.atomic():
            patient = get_patient_or_404(patient_id)
            alert = _insert(patient, alert_type, severity, title, description, source, trigger_value)
            _record(alert, superseded, actor)

    logger.info('created alert %s %s/%s for patient %s', alert.id, alert.alert_type, alert.severity, patient.pk)
    return alert


def _record(alert: ClinicalAlert, superseded: List[ClinicalAlert], actor):
    for old in superseded:
        log_action(user=actor, action='alert_supersede', object_type='clinical_alert', object_id=old.id,
                   patient_id=old.patient_id, detail={'replacedBy': str(alert.id)})
        _broadcast(old, 'superseded')
    log_action(user=actor, action='alert_create', object_type='clinical_alert', object_id=alert.id,
               patient_id=alert.patient_id,
               detail={'alertType': alert.alert_type, 'severity': alert.severity, 'source': alert.source})
    _broadcast(alert, 'created')


def _locked_alert(alert_id) -> ClinicalAlert:
    try:
        pk = alert_id if isinstance(alert_id, uuid.UUID) else uuid.UUID(str(alert_id))
    except (TypeError, ValueError):
        raise NotFound(f'Alert not found: {alert_id}')
    alert = ClinicalAlert.objects.select_for_update().filter(pk=pk).first()
    if not alert:
        raise NotFound(f'Alert not found: {alert_id}')
    return alert


@transaction.atomic
def acknowledge_alert(alert_id, actor) -> ClinicalAlert:
    alert = _locked_alert(alert_id)
    try:
        _apply(alert, AlertAction.ACKNOWLEDGE, actor=actor)
    except InvalidTransition as e:
        raise AlertStateConflict(str(e))
    log_action(user=actor, action='alert_acknowledge', object_type='clinical_alert', object_id=alert.id,
               patient_id=alert.patient_id)
    _broadcast(alert, 'acknowledged')
    logger.info('alert %s acknowledged by %s', alert.id, getattr(actor, 'pk', None))
    return alert


def clean_dismiss_reason(reason: Optional[str]) -> str:
    """Strip all markup from a dismiss reason and return the plain text.

    The length limit applies to the text as typed.  The stored value is
    unescaped so ``<``, ``>`` and ``&`` survive as entered.
    """
    reason = (reason or '').strip()
    if len(reason) > DISMISS_REASON_MAX:
        raise ValidationError({'reason': [f'Dismiss reason must be at most {DISMISS_REASON_MAX} characters']})
    reason = html.unescape(bleach.clean(reason, tags=set(), strip=True)).strip()
    if not reason:
        raise ValidationError({'reason': ['Dismiss reason is required']})
    return reason


@transaction.atomic
def dismiss_alert(alert_id, reason: Optional[str], actor) -> ClinicalAlert:
    reason = clean_dismiss_reason(reason)
    alert = _locked_alert(alert_id)
    try:
        _apply(alert, AlertAction.DISMISS, actor=actor, reason=reason)
    except InvalidTransition as e:
        raise AlertStateConflict(str(e))
    log_action(user=actor, action='alert_dismiss', object_type='clinical_alert', object_id=alert.id,
               patient_id=alert.patient_id, detail={'reason': reason})
    _broadcast(alert, 'dismissed')
    logger.info('alert %s dismissed by %s', alert.id, getattr(actor, 'pk', None))
    return alert


def _page_bounds(page: int, page_size: int) -> Tuple[int, int]:
    page = max(1, int(page or 1))
    page_size = min(settings.CLINICAL_PAGE_SIZE_MAX, max(1, int(page_size or settings.CLINICAL_PAGE_SIZE_DEFAULT)))
    return page, page_size


def _filtered(qs, status: Optional[str], severity: Optional[str]):
    try:
        if status:
            qs = qs.filter(status=AlertStatus(status.upper()).value)
        if severity:
            qs = qs.filter(severity=AlertSeverity(severity.upper()).value)
    except ValueError as e:
        raise ValidationError({'filter': [str(e)]})
    return qs


def list_patient_alerts(patient_id: str, *, status: Optional[str] = None, severity: Optional[str] = None,
                        page: int = 1, page_size: int = 20):
    get_patient_or_404(patient_id)
    page, page_size = _page_bounds(page, page_size)
    qs = _filtered(ClinicalAlert.objects.filter(patient_id=patient_id), status, severity)
    total = qs.count()
    qs = qs.order_by('-created_at', '-id')[(page - 1) * page_size: page * page_size]
    return [format_alert(a) for a in qs], total


def list_alert_feed(*, status: Optional[str] = None, severity: Optional[str] = None,
                    practitioner_id: Optional[int] = None, page: int = 1, page_size: int = 20):
    """Alerts across patients, newest first; scoped to a practitioner's patients when given."""
    page, page_size = _page_bounds(page, page_size)
    qs = ClinicalAlert.objects.select_related('patient')
    if practitioner_id is not None:
        qs = qs.filter(patient_id__in=patient_ids_in_scope(practitioner_id))
    qs = _filtered(qs, status, severity)
    total = qs.count()
    qs = qs.order_by('-created_at', '-id')[(page - 1) * page_size: page * page_size]
    return [format_alert(a, with_patient=True) for a in qs], total


def raise_lab_result_alert(patient_id: str, test_name: str, value, unit: Optional[str],
                           interpretation: Optional[str], *, actor=None) -> Optional[ClinicalAlert]:
    """Raise an alert for a flagged lab result; NORMAL or unknown flags raise nothing."""
    flag = (interpretation or '').strip().upper()
    if flag in LAB_CRITICAL_FLAGS:
        alert_type, severity = AlertType.LAB_CRITICAL, AlertSeverity.CRITICAL
        title = f'Critical Lab Result: {test_name}'
    elif flag in LAB_ABNORMAL_FLAGS:
        alert_type, severity = AlertType.LAB_ABNORMAL, AlertSeverity.WARNING
        title = f'Abnormal Lab Result: {test_name}'
    else:
        return None
    shown = f'{value} {unit}'.strip() if unit else str(value)
    description = f'{test_name} result {shown} flagged {flag}'
    return create_alert(patient_id, alert_type, severity, title, description, 'LabResultService',
                        trigger_value=shown, actor=actor)
