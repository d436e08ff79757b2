import logging

from django.db.models import Count

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.actors import Actor
from accounts.permissions import IsReviewer
from vendors.models import UploadedDocument, VerificationStatus
from vendors.serializers.document_serializers import DocumentDetailSerializer, DocumentListSerializer
from .serializers import AIAuditLogSerializer, ManualReviewSerializer

logger = logging.getLogger(__name__)


class ReviewQueueViewSet(viewsets.ReadOnlyModelViewSet):
    """Reviewer view over uploaded documents; the default listing is the manual review queue."""

    permission_classes = [IsReviewer]
    lookup_url_kwarg = 'document_id'

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return DocumentDetailSerializer
        return DocumentListSerializer

    def get_queryset(self):
        qs = UploadedDocument.objects.select_related('vendor', 'compliance_document')

        if self.action != 'list':
            return qs.prefetch_related('history')

        status_filter = self.request.query_params.get('status') or VerificationStatus.PENDING_MANUAL_REVIEW
        qs = qs.filter(verification_status=status_filter)

        if vendor_id := self.request.query_params.get('vendor'):
            qs = qs.filter(vendor_id=vendor_id)

        return qs.order_by('uploaded_at')

    @action(detail=True, methods=['post'])
    def resolve(self, request, document_id=None):
        serializer = ManualReviewSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({'error': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        document = self.get_object()
        actor = Actor.from_request(request)

        try:
            from .services.orchestrator import VerificationOrchestrator
            document = VerificationOrchestrator().apply_manual_review(
                document.id,
                serializer.validated_data['status'],
                actor,
                serializer.validated_data.get('note', ''),
            )
        except Exception:
            logger.exception("resolve: error for document %s", document_id)
            return Response({'error': 'Failed to apply review decision'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        logger.info(
            "resolve: document=%s new_status=%s reviewer=%s",
            document.id, document.verification_status, actor.user_id,
        )
        return Response(DocumentDetailSerializer(document).data)

    @action(detail=True, methods=['get'])
    def audit_logs(self, request, document_id=None):
        document = self.get_object()
        try:
            logs = document.audit_logs.order_by('-created_at')
            return Response(AIAuditLogSerializer(logs, many=True).data)
        except Exception:
            logger.exception("audit_logs: error for document %s", document_id)
            return Response({'error': 'Failed to fetch audit logs'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    @action(detail=False, methods=['get'])
    def statistics(self, request):
        try:
            counts = dict(
                UploadedDocument.objects
                .values_list('verification_status')
                .annotate(total=Count('id'))
                .order_by()
            )
            return Response({
                value: counts.get(value, 0) for value in VerificationStatus.values
            })
        except Exception:
            logger.exception("statistics: error for user %s", request.user.id)
            return Response({'error': 'Failed to fetch statistics'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
