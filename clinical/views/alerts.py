from django.conf import settings
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinical.permissions import IsClinicalStaff, practitioner_scope
from clinical.serializers.alerts import AlertDismissSerializer, AlertListQuerySerializer
from clinical.services.alerts import (
    acknowledge_alert, dismiss_alert, format_alert, list_alert_feed, list_patient_alerts,
)


def _paged(q):
    page = q.validated_data.get('page', 1)
    page_size = q.validated_data.get('pageSize', settings.CLINICAL_PAGE_SIZE_DEFAULT)
    return page, page_size


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalStaff])
def patient_alerts(request, patient_id: str):
    q = AlertListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page, page_size = _paged(q)
    data, total = list_patient_alerts(
        patient_id,
        status=q.validated_data.get('status'),
        severity=q.validated_data.get('severity'),
        page=page,
        page_size=page_size,
    )
    return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'page': page, 'pageSize': page_size}})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalStaff])
def alert_feed(request):
    """Alerts across patients.  Doctors only see alerts for their own patients."""
    q = AlertListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page, page_size = _paged(q)
    data, total = list_alert_feed(
        status=q.validated_data.get('status'),
        severity=q.validated_data.get('severity'),
        practitioner_id=practitioner_scope(request.user),
        page=page,
        page_size=page_size,
    )
    return Response({'ok': True, 'data': data, 'pagination': {'total': total, 'page': page, 'pageSize': page_size}})


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated, IsClinicalStaff])
def alert_acknowledge(request, alert_id):
    alert = acknowledge_alert(alert_id, request.user)
    return Response({'ok': True, 'data': format_alert(alert)})


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated, IsClinicalStaff])
def alert_dismiss(request, alert_id):
    s = AlertDismissSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    alert = dismiss_alert(alert_id, s.validated_data['reason'], request.user)
    return Response({'ok': True, 'data': format_alert(alert)})
