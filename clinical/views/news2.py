from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinical.intelligence import news2
from clinical.permissions import IsClinicalStaff
from clinical.serializers.news2 import VitalsSerializer
from clinical.services.news2 import score_patient


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicalStaff])
def score_vitals(request):
    """Score an ad-hoc set of vitals.  Nothing is stored and no alert is raised."""
    s = VitalsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = news2.score(s.to_snapshot())
    return Response({'ok': True, 'data': result.as_dict()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalStaff])
def patient_news2(request, patient_id: str):
    """Score the patient's latest vitals; MEDIUM and HIGH risk raise a NEWS2 alert."""
    result = score_patient(patient_id, actor=request.user)
    return Response({'ok': True, 'data': result.as_dict()})
