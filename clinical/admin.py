"""
Django admin registrations for the clinical models.

Alerts are shown read-only apart from their lifecycle fields; status changes
should go through the API so they are audited.
"""

from django.contrib import admin

from .models import (
    AuditEvent,
    ClinicalAlert,
    Patient,
    PatientAllergy,
    PatientMedication,
    PatientProblem,
    PatientVitals,
    User,
    Visit,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'is_staff', 'is_superuser')
    list_filter = ('role',)
    search_fields = ('username', 'first_name', 'last_name')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('patient_id', 'first_name', 'last_name', 'blood_group', 'status')
    list_filter = ('status',)
    search_fields = ('patient_id', 'first_name', 'last_name')


@admin.register(PatientVitals)
class PatientVitalsAdmin(admin.ModelAdmin):
    list_display = ('patient', 'respiratory_rate', 'oxygen_saturation', 'blood_pressure_systolic',
                    'heart_rate', 'temperature', 'recorded_at')
    search_fields = ('patient__patient_id',)


@admin.register(PatientMedication)
class PatientMedicationAdmin(admin.ModelAdmin):
    list_display = ('patient', 'medication_name', 'dosage', 'status')
    list_filter = ('status',)


@admin.register(PatientAllergy)
class PatientAllergyAdmin(admin.ModelAdmin):
    list_display = ('patient', 'substance', 'severity', 'active')


admin.site.register(PatientProblem)
admin.site.register(Visit)


@admin.register(ClinicalAlert)
class ClinicalAlertAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'alert_type', 'severity', 'status', 'created_at')
    list_filter = ('alert_type', 'severity', 'status')
    search_fields = ('patient__patient_id', 'title')
    readonly_fields = [f.name for f in ClinicalAlert._meta.fields]


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'patient_id', 'user', 'created_at')
    list_filter = ('action',)
