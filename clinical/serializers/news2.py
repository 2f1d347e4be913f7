from decimal import Decimal

from rest_framework import serializers

from clinical.intelligence.news2 import VitalsSnapshot

VITAL_FIELDS = ('respiratoryRate', 'oxygenSaturation', 'systolicBp', 'heartRate', 'temperature')


class VitalsSerializer(serializers.Serializer):
    respiratoryRate = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    oxygenSaturation = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=100)
    systolicBp = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    heartRate = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    temperature = serializers.DecimalField(required=False, allow_null=True, max_digits=4, decimal_places=1,
                                           min_value=Decimal('0'))

    def validate(self, attrs):
        if all(attrs.get(f) is None for f in VITAL_FIELDS):
            raise serializers.ValidationError('At least one vital sign is required')
        return attrs

    def to_snapshot(self) -> VitalsSnapshot:
        vd = self.validated_data
        return VitalsSnapshot(
            respiratory_rate=vd.get('respiratoryRate'),
            oxygen_saturation=vd.get('oxygenSaturation'),
            systolic_bp=vd.get('systolicBp'),
            heart_rate=vd.get('heartRate'),
            temperature=vd.get('temperature'),
        )
