"""
URL mappings for the clinical safety API.

Trailing slashes are omitted, matching the front-end client.
"""
from django.urls import path, include

from .auth_views import login_view
from .views import alerts, dashboard, drug_safety, health, news2

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    # NEWS2
    path('api/news2/score', news2.score_vitals),
    path('api/patients/<str:patient_id>/news2', news2.patient_news2),
    # Drug safety
    path('api/patients/<str:patient_id>/drug-check', drug_safety.drug_check),
    path('api/patients/<str:patient_id>/interaction-summary', drug_safety.interaction_summary),
    # Alerts
    path('api/patients/<str:patient_id>/alerts', alerts.patient_alerts),
    path('api/alerts', alerts.alert_feed),
    path('api/alerts/<uuid:alert_id>/acknowledge', alerts.alert_acknowledge),
    path('api/alerts/<uuid:alert_id>/dismiss', alerts.alert_dismiss),
    # Dashboard
    path('api/dashboard/patient-risk', dashboard.patient_risk),
    path('api/dashboard/stats', dashboard.stats),
]
