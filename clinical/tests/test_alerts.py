import threading
import uuid
from decimal import Decimal

import pytest
from django.db import connection
from rest_framework.exceptions import NotFound, ValidationError

from clinical.exceptions import AlertStateConflict
from clinical.intelligence.lifecycle import SUPERSEDED_REASON, AlertType
from clinical.models import AuditEvent, ClinicalAlert, Patient, PatientVitals, User, Visit
from clinical.services import alerts
from clinical.services.news2 import score_patient

pytestmark = pytest.mark.django_db


@pytest.fixture
def patient():
    return Patient.objects.create(patient_id='PAT-TEST-0001', first_name='Chloe', last_name='Nakamura')


@pytest.fixture
def nurse():
    return User.objects.create_user(username='nurse1', password='P@ssw0rd1', role='NURSE')


def news2_alert(patient_id, score=9):
    return alerts.create_alert(patient_id, 'NEWS2_CRITICAL', 'CRITICAL', f'NEWS2 Critical Risk (Score {score})',
                               'desc', 'News2Service', trigger_value=score)


def deteriorating_vitals(patient):
    return PatientVitals.objects.create(patient=patient, respiratory_rate=30, oxygen_saturation=89,
                                        blood_pressure_systolic=85, heart_rate=75, temperature=Decimal('37.0'))


# ---------------------------------------------------------------------
# NEWS2 alerting path
# ---------------------------------------------------------------------
def test_news2_twice_keeps_one_active_alert(patient):
    deteriorating_vitals(patient)
    first = score_patient(patient.patient_id)
    second = score_patient(patient.patient_id)
    assert first.total_score == second.total_score == 9

    rows = ClinicalAlert.objects.filter(patient=patient, alert_type='NEWS2_CRITICAL')
    assert rows.count() == 2
    active = rows.get(status='ACTIVE')
    dismissed = rows.get(status='DISMISSED')
    assert dismissed.dismiss_reason == SUPERSEDED_REASON
    assert dismissed.created_at <= active.created_at
    assert active.title == 'NEWS2 Critical Risk (Score 9)'
    assert active.description == \
        'Patient NEWS2 score is 9 — Emergency clinical assessment required immediately'
    assert active.source == 'News2Service'
    assert active.trigger_value == '9'


def test_news2_medium_raises_warning(patient):
    PatientVitals.objects.create(patient=patient, respiratory_rate=8, oxygen_saturation=97,
                                 blood_pressure_systolic=120, heart_rate=70, temperature=Decimal('37.0'))
    result = score_patient(patient.patient_id)
    assert result.risk_level.value == 'MEDIUM'
    alert = ClinicalAlert.objects.get(patient=patient)
    assert (alert.alert_type, alert.severity) == ('NEWS2_HIGH', 'WARNING')
    assert alert.title == 'NEWS2 Elevated Risk (Score 3)'


def test_news2_low_and_no_data_raise_nothing(patient):
    assert score_patient(patient.patient_id).risk_level.value == 'NO_DATA'
    PatientVitals.objects.create(patient=patient, respiratory_rate=16, oxygen_saturation=97)
    assert score_patient(patient.patient_id).risk_level.value == 'LOW'
    assert not ClinicalAlert.objects.exists()


def test_news2_uses_latest_vitals(patient):
    deteriorating_vitals(patient)
    calm = PatientVitals.objects.create(patient=patient, respiratory_rate=16, oxygen_saturation=97,
                                        blood_pressure_systolic=120, heart_rate=70)
    result = score_patient(patient.patient_id)
    assert result.based_on_vitals_id == calm.pk
    assert result.total_score == 0


def test_news2_unknown_patient(db):
    with pytest.raises(NotFound):
        score_patient('NOPE')


def test_critical_and_high_are_separate_keys(patient):
    news2_alert(patient.patient_id)
    alerts.create_alert(patient.patient_id, 'NEWS2_HIGH', 'WARNING', 't', 'd', 'News2Service')
    assert ClinicalAlert.objects.filter(patient=patient, status='ACTIVE').count() == 2


def test_acknowledged_alert_is_not_superseded(patient, nurse):
    old = news2_alert(patient.patient_id)
    alerts.acknowledge_alert(old.id, nurse)
    news2_alert(patient.patient_id)
    old.refresh_from_db()
    assert old.status == 'ACKNOWLEDGED'
    assert ClinicalAlert.objects.filter(patient=patient, status='ACTIVE').count() == 1


def test_non_recurring_types_accumulate(patient):
    for _ in range(3):
        alerts.create_alert(patient.patient_id, 'LAB_ABNORMAL', 'WARNING', 't', 'd', 'LabResultService')
    assert ClinicalAlert.objects.filter(status='ACTIVE').count() == 3


@pytest.mark.django_db(transaction=True)
def test_concurrent_news2_creation_leaves_one_active():
    patient = Patient.objects.create(patient_id='PAT-TEST-0002', first_name='Dev', last_name='Patel')
    errors = []

    def worker():
        try:
            news2_alert(patient.patient_id)
        except Exception as e:
            errors.append(e)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []
    assert ClinicalAlert.objects.filter(patient=patient, status='ACTIVE').count() == 1
    assert ClinicalAlert.objects.filter(patient=patient).count() == 4


# ---------------------------------------------------------------------
# Acknowledge / dismiss
# ---------------------------------------------------------------------
def test_acknowledge_records_actor(patient, nurse):
    a = news2_alert(patient.patient_id)
    alerts.acknowledge_alert(str(a.id), nurse)
    a.refresh_from_db()
    assert a.status == 'ACKNOWLEDGED'
    assert a.acknowledged_by == nurse
    assert a.acknowledged_at is not None
    assert AuditEvent.objects.filter(action='alert_acknowledge', object_id=str(a.id)).exists()


def test_acknowledge_unknown_alert(nurse):
    with pytest.raises(NotFound):
        alerts.acknowledge_alert(uuid.uuid4(), nurse)
    with pytest.raises(NotFound):
        alerts.acknowledge_alert('not-a-uuid', nurse)


def test_acknowledge_terminal_alert_conflicts(patient, nurse):
    a = news2_alert(patient.patient_id)
    alerts.dismiss_alert(a.id, 'Patient reviewed', nurse)
    with pytest.raises(AlertStateConflict):
        alerts.acknowledge_alert(a.id, nurse)


def test_dismiss_requires_reason(patient, nurse):
    a = news2_alert(patient.patient_id)
    for reason in ('', '   ', None, '<b></b>', '<p> </p>'):
        with pytest.raises(ValidationError):
            alerts.dismiss_alert(a.id, reason, nurse)
    a.refresh_from_db()
    assert a.status == 'ACTIVE'


def test_dismiss_records_reason(patient, nurse):
    a = news2_alert(patient.patient_id)
    alerts.dismiss_alert(a.id, 'Patient reviewed', nurse)
    a.refresh_from_db()
    assert a.status == 'DISMISSED'
    assert a.dismiss_reason == 'Patient reviewed'
    assert a.dismissed_by == nurse
    assert a.dismissed_at is not None


def test_dismiss_reason_is_sanitized_and_bounded(patient, nurse):
    a = news2_alert(patient.patient_id)
    with pytest.raises(ValidationError):
        alerts.dismiss_alert(a.id, 'x' * 1001, nurse)
    alerts.dismiss_alert(a.id, '<script>x</script>Reviewed', nurse)
    a.refresh_from_db()
    assert '<script>' not in a.dismiss_reason
    assert a.dismiss_reason.endswith('Reviewed')


def test_dismiss_reason_keeps_comparison_signs(patient, nurse):
    a = news2_alert(patient.patient_id)
    alerts.dismiss_alert(a.id, 'SpO2 < 92 rechecked, now > 95 & stable', nurse)
    a.refresh_from_db()
    assert a.dismiss_reason == 'SpO2 < 92 rechecked, now > 95 & stable'
    ev = AuditEvent.objects.get(action='alert_dismiss')
    assert ev.detail['reason'] == 'SpO2 < 92 rechecked, now > 95 & stable'


def test_dismiss_reason_limit_counts_typed_characters(patient, nurse):
    a = news2_alert(patient.patient_id)
    reason = ('a & b ' * 200)[:1000]
    alerts.dismiss_alert(a.id, reason, nurse)
    a.refresh_from_db()
    assert a.dismiss_reason == reason.strip()


def test_key_locks_are_a_fixed_pool():
    seen = {alerts._key_lock(f'PAT-{i:05d}', AlertType.NEWS2_CRITICAL) for i in range(500)}
    assert len(seen) <= alerts.KEY_LOCK_STRIPES
    assert alerts._key_lock('PAT-00001', AlertType.NEWS2_HIGH) is \
        alerts._key_lock('PAT-00001', AlertType.NEWS2_HIGH)


def test_dismiss_twice_conflicts(patient, nurse):
    a = news2_alert(patient.patient_id)
    alerts.dismiss_alert(a.id, 'Patient reviewed', nurse)
    with pytest.raises(AlertStateConflict):
        alerts.dismiss_alert(a.id, 'again', nurse)


def test_dismiss_unknown_alert(nurse):
    with pytest.raises(NotFound):
        alerts.dismiss_alert(uuid.uuid4(), 'Patient reviewed', nurse)


# ---------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------
def test_list_patient_alerts_newest_first_and_filtered(patient, nurse):
    lab = alerts.create_alert(patient.patient_id, 'LAB_ABNORMAL', 'WARNING', 'lab', 'd', 'LabResultService')
    drug = alerts.create_alert(patient.patient_id, 'DRUG_INTERACTION', 'CRITICAL', 'drug', 'd',
                               'DrugSafetyEvaluator')
    alerts.acknowledge_alert(lab.id, nurse)

    items, total = alerts.list_patient_alerts(patient.patient_id)
    assert total == 2
    assert [i['id'] for i in items] == [str(drug.id), str(lab.id)]

    items, total = alerts.list_patient_alerts(patient.patient_id, status='ACTIVE')
    assert total == 1 and items[0]['title'] == 'drug'

    items, total = alerts.list_patient_alerts(patient.patient_id, severity='WARNING')
    assert total == 1 and items[0]['title'] == 'lab'

    items, total = alerts.list_patient_alerts(patient.patient_id, page=2, page_size=1)
    assert total == 2 and items[0]['title'] == 'lab'


def test_list_patient_alerts_bad_filter(patient):
    with pytest.raises(ValidationError):
        alerts.list_patient_alerts(patient.patient_id, status='SNOOZED')


def test_alert_feed_scoped_to_practitioner(patient):
    other = Patient.objects.create(patient_id='PAT-TEST-0003', first_name='Elena', last_name='Rossi')
    doctor = User.objects.create_user(username='doc', password='P@ssw0rd1', role='DOCTOR')
    Visit.objects.create(patient=patient, practitioner=doctor, visit_date='2026-01-05')
    news2_alert(patient.patient_id)
    news2_alert(other.patient_id)

    items, total = alerts.list_alert_feed()
    assert total == 2
    items, total = alerts.list_alert_feed(practitioner_id=doctor.pk)
    assert total == 1
    assert items[0]['patientId'] == patient.patient_id
    assert items[0]['patientName'] == 'Chloe Nakamura'


# ---------------------------------------------------------------------
# Lab results
# ---------------------------------------------------------------------
@pytest.mark.parametrize('flag,alert_type,severity', [
    ('CRITICAL_HIGH', 'LAB_CRITICAL', 'CRITICAL'),
    ('critical_low', 'LAB_CRITICAL', 'CRITICAL'),
    ('HIGH', 'LAB_ABNORMAL', 'WARNING'),
    ('LOW', 'LAB_ABNORMAL', 'WARNING'),
])
def test_lab_result_alerts(patient, flag, alert_type, severity):
    a = alerts.raise_lab_result_alert(patient.patient_id, 'Potassium', '6.8', 'mmol/L', flag)
    assert (a.alert_type, a.severity) == (alert_type, severity)
    assert a.trigger_value == '6.8 mmol/L'


def test_normal_lab_result_raises_nothing(patient):
    assert alerts.raise_lab_result_alert(patient.patient_id, 'Sodium', '140', 'mmol/L', 'NORMAL') is None
    assert not ClinicalAlert.objects.exists()


def test_create_alert_unknown_patient(db):
    with pytest.raises(NotFound):
        news2_alert('NOPE')


def test_create_alert_writes_audit(patient):
    a = news2_alert(patient.patient_id)
    news2_alert(patient.patient_id)
    assert AuditEvent.objects.filter(action='alert_create', patient_id=patient.patient_id).count() == 2
    assert AuditEvent.objects.get(action='alert_supersede').object_id == str(a.id)
