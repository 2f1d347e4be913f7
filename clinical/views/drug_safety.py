from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinical.permissions import IsClinicalStaff, IsPrescriber
from clinical.serializers.drug_safety import DrugCheckSerializer
from clinical.services.drug_safety import check_drug_for_patient, summarize_interactions


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPrescriber])
def drug_check(request, patient_id: str):
    s = DrugCheckSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    verdict = check_drug_for_patient(patient_id, s.validated_data['drugName'], actor=request.user)
    return Response({'ok': True, 'data': verdict.as_dict()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalStaff])
def interaction_summary(request, patient_id: str):
    summary = summarize_interactions(patient_id)
    return Response({'ok': True, 'data': summary.as_dict()})
