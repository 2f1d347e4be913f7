"""
Integration tests for the clinical safety API.

These exercise the HTTP surface end to end: role checks, request
validation, NEWS2 alerting, drug checks, the alert lifecycle and the
risk dashboard.  They use Django REST framework's APIClient within the
APITestCase base class.

To run the tests:

```
pytest -q clinical/tests
```
"""
import uuid
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from ..models import ClinicalAlert, Patient, PatientAllergy, PatientMedication, PatientVitals, User, Visit


class ClinicalAPITests(APITestCase):
    def setUp(self) -> None:
        """Create staff of every role, two patients and a doctor/patient visit."""
        self.doctor = User.objects.create_user(username="doctor1", password="docpass", role="DOCTOR")
        self.other_doctor = User.objects.create_user(username="doctor2", password="docpass", role="DOCTOR")
        self.nurse = User.objects.create_user(username="nurse1", password="nursepass", role="NURSE")
        self.admin_user = User.objects.create_user(username="admin1", password="adminpass", role="ADMIN")
        self.receptionist = User.objects.create_user(username="desk1", password="deskpass", role="RECEPTIONIST")

        self.patient = Patient.objects.create(patient_id="PAT-2026-00001", first_name="Ben", last_name="Okafor")
        self.other = Patient.objects.create(patient_id="PAT-2026-00002", first_name="Ada", last_name="Moreno")
        Visit.objects.create(patient=self.patient, practitioner=self.doctor, visit_date=timezone.now().date(),
                             status=Visit.STATUS_COMPLETED)
        PatientMedication.objects.create(patient=self.patient, medication_name="warfarin")
        PatientAllergy.objects.create(patient=self.patient, substance="penicillin")

        self.client = APIClient()

    def as_user(self, user):
        self.client.force_authenticate(user=user)

    def critical_vitals(self, patient):
        PatientVitals.objects.create(patient=patient, respiratory_rate=30, oxygen_saturation=89,
                                     blood_pressure_systolic=85, heart_rate=75, temperature=Decimal("37.0"))

    # -----------------------------------------------------------------
    # Authentication
    # -----------------------------------------------------------------
    def test_login_returns_token_and_role(self) -> None:
        resp = self.client.post(reverse("login_view"), {"username": "nurse1", "password": "nursepass"},
                                format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["ok"])
        self.assertEqual(resp.data["role"], "NURSE")
        self.client.credentials(HTTP_AUTHORIZATION=f"Token {resp.data['token']}")
        resp = self.client.get("/api/alerts")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

    def test_login_rejects_bad_password(self) -> None:
        resp = self.client.post(reverse("login_view"), {"username": "nurse1", "password": "wrong"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(resp.data["ok"])

    def test_anonymous_is_rejected(self) -> None:
        resp = self.client.get("/api/alerts")
        self.assertIn(resp.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(resp.data["ok"])

    def test_receptionist_has_no_clinical_access(self) -> None:
        self.as_user(self.receptionist)
        self.assertEqual(self.client.get(f"/api/patients/{self.patient.patient_id}/alerts").status_code,
                         status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.post("/api/news2/score", {"heartRate": 80}, format="json").status_code,
                         status.HTTP_403_FORBIDDEN)

    # -----------------------------------------------------------------
    # NEWS2
    # -----------------------------------------------------------------
    def test_score_vitals_is_pure(self) -> None:
        self.as_user(self.nurse)
        resp = self.client.post("/api/news2/score", {
            "respiratoryRate": 30, "oxygenSaturation": 89, "systolicBp": 85, "heartRate": 75, "temperature": "37.0",
        }, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["data"]["totalScore"], 9)
        self.assertEqual(resp.data["data"]["riskLevel"], "HIGH")
        self.assertEqual(len(resp.data["data"]["components"]), 6)
        self.assertFalse(ClinicalAlert.objects.exists())

    def test_score_vitals_validation(self) -> None:
        self.as_user(self.nurse)
        for body in ({}, {"oxygenSaturation": 101}, {"heartRate": -1}, {"temperature": "37.25"},
                     {"respiratoryRate": "fast"}):
            resp = self.client.post("/api/news2/score", body, format="json")
            self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST, body)
            self.assertFalse(resp.data["ok"])

    def test_patient_news2_raises_single_active_alert(self) -> None:
        self.critical_vitals(self.patient)
        self.as_user(self.nurse)
        url = f"/api/patients/{self.patient.patient_id}/news2"
        for _ in range(2):
            resp = self.client.get(url)
            self.assertEqual(resp.status_code, status.HTTP_200_OK)
            self.assertEqual(resp.data["data"]["riskLevel"], "HIGH")
        active = ClinicalAlert.objects.filter(patient=self.patient, alert_type="NEWS2_CRITICAL", status="ACTIVE")
        self.assertEqual(active.count(), 1)

    def test_patient_news2_without_vitals(self) -> None:
        self.as_user(self.nurse)
        resp = self.client.get(f"/api/patients/{self.other.patient_id}/news2")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["data"]["riskLevel"], "NO_DATA")
        self.assertIsNone(resp.data["data"]["totalScore"])
        self.assertEqual(resp.data["data"]["message"], "No vitals on record")

    def test_patient_news2_unknown_patient(self) -> None:
        self.as_user(self.nurse)
        resp = self.client.get("/api/patients/NOPE/news2")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["error"]["code"], "not_found")

    # -----------------------------------------------------------------
    # Drug safety
    # -----------------------------------------------------------------
    def test_drug_check_flags_interaction(self) -> None:
        self.as_user(self.doctor)
        resp = self.client.post(f"/api/patients/{self.patient.patient_id}/drug-check", {"drugName": "Aspirin"},
                                format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.data["data"]
        self.assertFalse(data["safe"])
        self.assertEqual(data["interactions"][0]["severity"], "MAJOR")
        alert = ClinicalAlert.objects.get(patient=self.patient)
        self.assertEqual((alert.alert_type, alert.severity), ("DRUG_INTERACTION", "CRITICAL"))

    def test_drug_check_flags_allergy(self) -> None:
        self.as_user(self.admin_user)
        resp = self.client.post(f"/api/patients/{self.patient.patient_id}/drug-check", {"drugName": "amoxicillin"},
                                format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["data"]["allergyContraindications"],
                         ["Allergy to penicillin (cross-reaction with amoxicillin)"])
        self.assertEqual(ClinicalAlert.objects.get(patient=self.patient).alert_type, "ALLERGY_CONTRAINDICATION")

    def test_drug_check_is_for_prescribers_only(self) -> None:
        self.as_user(self.nurse)
        resp = self.client.post(f"/api/patients/{self.patient.patient_id}/drug-check", {"drugName": "aspirin"},
                                format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_drug_check_validation(self) -> None:
        self.as_user(self.doctor)
        url = f"/api/patients/{self.patient.patient_id}/drug-check"
        self.assertEqual(self.client.post(url, {"drugName": ""}, format="json").status_code, 400)
        self.assertEqual(self.client.post(url, {"drugName": "x" * 201}, format="json").status_code, 400)
        self.assertEqual(self.client.post(url, {"drugName": "<i></i>"}, format="json").status_code, 400)

    def test_interaction_summary(self) -> None:
        PatientMedication.objects.create(patient=self.patient, medication_name="aspirin")
        self.as_user(self.nurse)
        resp = self.client.get(f"/api/patients/{self.patient.patient_id}/interaction-summary")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data["data"]["interactions"]), 1)
        self.assertFalse(resp.data["data"]["safe"])
        self.assertFalse(ClinicalAlert.objects.exists())

    # -----------------------------------------------------------------
    # Alert lifecycle
    # -----------------------------------------------------------------
    def test_acknowledge_then_conflict(self) -> None:
        self.critical_vitals(self.patient)
        self.as_user(self.nurse)
        self.client.get(f"/api/patients/{self.patient.patient_id}/news2")
        alert = ClinicalAlert.objects.get(patient=self.patient)

        resp = self.client.post(f"/api/alerts/{alert.id}/acknowledge")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["data"]["status"], "ACKNOWLEDGED")
        self.assertEqual(resp.data["data"]["acknowledgedBy"], self.nurse.id)

        resp = self.client.post(f"/api/alerts/{alert.id}/acknowledge")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["error"]["code"], "alert_state_conflict")

    def test_dismiss_requires_reason(self) -> None:
        self.critical_vitals(self.patient)
        self.as_user(self.doctor)
        self.client.get(f"/api/patients/{self.patient.patient_id}/news2")
        alert = ClinicalAlert.objects.get(patient=self.patient)
        url = f"/api/alerts/{alert.id}/dismiss"

        self.assertEqual(self.client.post(url, {"reason": ""}, format="json").status_code, 400)
        self.assertEqual(self.client.post(url, {}, format="json").status_code, 400)
        resp = self.client.post(url, {"reason": "Patient reviewed"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["data"]["status"], "DISMISSED")
        self.assertEqual(resp.data["data"]["dismissReason"], "Patient reviewed")

    def test_alert_actions_accept_patch(self) -> None:
        self.critical_vitals(self.patient)
        self.as_user(self.nurse)
        self.client.get(f"/api/patients/{self.patient.patient_id}/news2")
        alert = ClinicalAlert.objects.get(patient=self.patient)

        resp = self.client.patch(f"/api/alerts/{alert.id}/acknowledge")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["data"]["status"], "ACKNOWLEDGED")

        resp = self.client.patch(f"/api/alerts/{alert.id}/dismiss", {"reason": "Reviewed"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_unknown_alert_is_404(self) -> None:
        self.as_user(self.nurse)
        resp = self.client.post(f"/api/alerts/{uuid.uuid4()}/acknowledge")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_alert_feed_scoped_for_doctors(self) -> None:
        self.critical_vitals(self.patient)
        self.critical_vitals(self.other)
        self.as_user(self.nurse)
        self.client.get(f"/api/patients/{self.patient.patient_id}/news2")
        self.client.get(f"/api/patients/{self.other.patient_id}/news2")

        resp = self.client.get("/api/alerts", {"status": "ACTIVE"})
        self.assertEqual(resp.data["pagination"]["total"], 2)

        self.as_user(self.doctor)
        resp = self.client.get("/api/alerts")
        self.assertEqual(resp.data["pagination"]["total"], 1)
        self.assertEqual(resp.data["data"][0]["patientId"], self.patient.patient_id)

        self.as_user(self.other_doctor)
        resp = self.client.get("/api/alerts")
        self.assertEqual(resp.data["pagination"]["total"], 0)

    def test_patient_alerts_filters(self) -> None:
        self.as_user(self.nurse)
        url = f"/api/patients/{self.patient.patient_id}/alerts"
        self.assertEqual(self.client.get(url, {"status": "SNOOZED"}).status_code, 400)
        resp = self.client.get(url, {"severity": "CRITICAL", "page": 1, "pageSize": 5})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["pagination"], {"total": 0, "page": 1, "pageSize": 5})

    # -----------------------------------------------------------------
    # Dashboard
    # -----------------------------------------------------------------
    def test_patient_risk_dashboard(self) -> None:
        self.critical_vitals(self.other)
        self.as_user(self.admin_user)
        resp = self.client.get("/api/dashboard/patient-risk")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([r["patientId"] for r in resp.data["data"]], [self.other.patient_id, self.patient.patient_id])
        self.assertEqual(resp.data["pagination"]["total"], 2)

        self.as_user(self.doctor)
        resp = self.client.get("/api/dashboard/patient-risk")
        self.assertEqual([r["patientId"] for r in resp.data["data"]], [self.patient.patient_id])

    def test_dashboard_is_for_prescribers_only(self) -> None:
        self.as_user(self.nurse)
        self.assertEqual(self.client.get("/api/dashboard/patient-risk").status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get("/api/dashboard/stats").status_code, status.HTTP_403_FORBIDDEN)

    def test_dashboard_stats(self) -> None:
        self.critical_vitals(self.patient)
        self.as_user(self.nurse)
        self.client.get(f"/api/patients/{self.patient.patient_id}/news2")
        self.as_user(self.admin_user)
        resp = self.client.get("/api/dashboard/stats")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["data"]["patientsWithNews2Critical"], 1)
        self.assertEqual(resp.data["data"]["totalActivePatients"], 2)

    def test_healthz(self) -> None:
        resp = self.client.get(reverse("healthz"))
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["ok"])
