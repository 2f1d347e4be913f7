"""
Risk dashboard endpoints for doctors and administrators.

Doctors see the patients they have visits with; administrators see every
active patient.
"""
from __future__ import annotations

from django.conf import settings
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsPrescriber, practitioner_scope
from ..serializers.dashboard import RiskDashboardQuerySerializer
from ..services.risk_dashboard import dashboard_stats, rank_patients


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPrescriber])
def patient_risk(request):
    """Patients ordered most-at-risk first, one page at a time."""
    q = RiskDashboardQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page = rank_patients(
        practitioner_id=practitioner_scope(request.user),
        page=q.validated_data.get('page', 1),
        page_size=q.validated_data.get('pageSize', settings.CLINICAL_PAGE_SIZE_DEFAULT),
    )
    return Response({'ok': True, **page.as_dict()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPrescriber])
def stats(request):
    return Response({'ok': True, 'data': dashboard_stats()})
