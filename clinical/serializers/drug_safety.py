import html

import bleach
from rest_framework import serializers


class DrugCheckSerializer(serializers.Serializer):
    drugName = serializers.CharField(max_length=200)

    def validate_drugName(self, v):
        v = html.unescape(bleach.clean((v or '').strip(), tags=set(), strip=True)).strip()
        if not v:
            raise serializers.ValidationError('Drug name is required')
        return v
