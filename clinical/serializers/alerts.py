from rest_framework import serializers

from clinical.intelligence.lifecycle import AlertSeverity, AlertStatus


class AlertListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[s.value for s in AlertStatus], required=False)
    severity = serializers.ChoiceField(choices=[s.value for s in AlertSeverity], required=False)
    page = serializers.IntegerField(required=False, min_value=1)
    pageSize = serializers.IntegerField(required=False, min_value=1, max_value=100)


class AlertDismissSerializer(serializers.Serializer):
    # sanitized again by the alert service
    reason = serializers.CharField(max_length=1000)
