import logging
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from django.core.paginator import Paginator

from accounts.actors import Actor
from accounts.permissions import IsAuthenticatedUser, SameVendor
from vendors.models import UploadedDocument, Vendor
from vendors.serializers.document_serializers import (
    DocumentListSerializer,
    DocumentDetailSerializer,
    DocumentUploadSerializer,
)
from verification.services.orchestrator import VerificationOrchestrator
from verification.tasks import process_document_async

logger = logging.getLogger("vendors.document_views")

PAGE_SIZE = 50


def _can_access(request, view, obj):
    return SameVendor().has_object_permission(request, view, obj)


class VendorDocumentListCreateView(APIView):
    permission_classes = [IsAuthenticatedUser]

    def get(self, request, vendor_id):
        try:
            vendor = Vendor.objects.get(id=vendor_id)
            if not _can_access(request, self, vendor):
                return Response({"error": "Access denied"}, status=status.HTTP_403_FORBIDDEN)

            documents = UploadedDocument.objects.filter(vendor=vendor).select_related(
                'vendor', 'compliance_document'
            )

            status_filter = request.query_params.get('status', '').strip()
            if status_filter:
                documents = documents.filter(verification_status=status_filter)

            try:
                page_number = max(int(request.query_params.get('page', 1)), 1)
            except (ValueError, TypeError):
                page_number = 1

            paginator = Paginator(documents.order_by('-uploaded_at', '-id'), PAGE_SIZE)
            page_obj = paginator.get_page(page_number)
            serializer = DocumentListSerializer(page_obj.object_list, many=True)

            logger.info(
                "Vendor documents fetched",
                extra={
                    "vendor_id": str(vendor.id),
                    "count": paginator.count,
                    "status": status_filter,
                }
            )

            return Response({
                'count': paginator.count,
                'total_pages': paginator.num_pages,
                'current_page': page_obj.number,
                'page_size': PAGE_SIZE,
                'results': serializer.data,
            }, status=status.HTTP_200_OK)

        except Vendor.DoesNotExist:
            return Response({"error": "Vendor not found"}, status=status.HTTP_404_NOT_FOUND)
        except Exception:
            logger.exception(
                "Failed to fetch vendor documents",
                extra={"vendor_id": str(vendor_id)}
            )
            return Response(
                {"error": "Failed to fetch documents. Please try again later."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

    def post(self, request, vendor_id):
        try:
            vendor = Vendor.objects.get(id=vendor_id)
        except Vendor.DoesNotExist:
            return Response({"error": "Vendor not found"}, status=status.HTTP_404_NOT_FOUND)

        if not _can_access(request, self, vendor):
            logger.warning(
                "Upload rejected - vendor mismatch",
                extra={"vendor_id": str(vendor_id), "user_id": str(request.user.id)}
            )
            return Response({"error": "Access denied"}, status=status.HTTP_403_FORBIDDEN)

        serializer = DocumentUploadSerializer(data=request.data, context={"vendor": vendor})
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        try:
            document = serializer.save()
        except Exception:
            logger.exception("Failed to store upload", extra={"vendor_id": str(vendor_id)})
            return Response(
                {"error": "Upload failed. Please try again."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        actor = Actor.from_request(request)
        try:
            task = process_document_async.delay(str(document.id), actor.as_dict())
        except Exception as e:
            logger.exception(
                "Failed to queue verification",
                extra={"document_id": str(document.id)}
            )
            return self._route_to_review(document, actor, e)

        logger.info(
            "Document uploaded and queued",
            extra={
                "document_id": str(document.id),
                "vendor_id": str(vendor.id),
                "document_type": document.compliance_document.name,
                "task_id": task.id,
            }
        )

        data = DocumentListSerializer(document).data
        data['task_id'] = task.id
        return Response(data, status=status.HTTP_201_CREATED)

    def _route_to_review(self, document, actor, error):
        """Stored upload that could not be queued: hand it to a reviewer instead of leaving it PENDING."""
        try:
            VerificationOrchestrator().record_dispatch_failure(document.id, error, actor)
        except Exception:
            logger.exception(
                "Failed to route unqueued upload to manual review",
                extra={"document_id": str(document.id)}
            )
            return Response(
                {"error": "Document stored but verification could not be started",
                 "document_id": str(document.id)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        document.refresh_from_db()
        data = DocumentListSerializer(document).data
        data['task_id'] = None
        data['message'] = "Automatic verification unavailable; document queued for manual review"
        return Response(data, status=status.HTTP_201_CREATED)


class DocumentDetailView(APIView):
    permission_classes = [IsAuthenticatedUser]

    def get(self, request, document_id):
        try:
            document = UploadedDocument.objects.select_related(
                'vendor',
                'compliance_document',
            ).prefetch_related('history').get(id=document_id)

            if not _can_access(request, self, document):
                return Response({"error": "Access denied"}, status=status.HTTP_403_FORBIDDEN)

            serializer = DocumentDetailSerializer(document)
            return Response(serializer.data, status=status.HTTP_200_OK)

        except UploadedDocument.DoesNotExist:
            logger.warning(
                "Document not found",
                extra={"document_id": str(document_id), "user_id": str(request.user.id)}
            )
            return Response({"error": "Document not found"}, status=status.HTTP_404_NOT_FOUND)
        except Exception:
            logger.exception(
                "Failed to fetch document details",
                extra={"document_id": str(document_id)}
            )
            return Response(
                {"error": "Failed to fetch document details"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )


class DocumentReverifyView(APIView):
    permission_classes = [IsAuthenticatedUser]

    def post(self, request, document_id):
        try:
            document = UploadedDocument.objects.get(id=document_id)
        except UploadedDocument.DoesNotExist:
            return Response({"error": "Document not found"}, status=status.HTTP_404_NOT_FOUND)

        if not _can_access(request, self, document):
            return Response({"error": "Access denied"}, status=status.HTTP_403_FORBIDDEN)

        if not document.file:
            return Response({"error": "Document has no file uploaded"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            task = process_document_async.delay(
                str(document.id), Actor.from_request(request).as_dict()
            )
        except Exception:
            logger.exception("Failed to queue re-verification", extra={"document_id": str(document_id)})
            return Response(
                {"error": "Failed to start verification"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        logger.info(
            "Re-verification queued",
            extra={"document_id": str(document_id), "task_id": task.id}
        )
        return Response(
            {"message": "Verification started", "task_id": task.id, "document_id": str(document_id)},
            status=status.HTTP_202_ACCEPTED
        )
