import logging
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from django.db.models import Count

from accounts.permissions import IsAuthenticatedUser, IsReviewer, SameVendor
from vendors.models import ComplianceDocument, UploadedDocument, Vendor
from vendors.serializers.vendor_serializers import (
    VendorComplianceSerializer,
    VendorCreateSerializer,
    VendorListSerializer,
)
from verification.services.risk_scorer import RiskScorer

logger = logging.getLogger("vendors.vendor_views")


class VendorListCreateView(APIView):

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsReviewer()]
        return [IsAuthenticatedUser()]

    def get(self, request):
        vendors = Vendor.objects.annotate(document_count=Count("documents"))

        if request.user.is_vendor_member:
            vendors = vendors.filter(id=request.user.vendor_id)

        search = request.query_params.get("search", "").strip()
        if search:
            vendors = vendors.filter(name__icontains=search)

        compliance_status = request.query_params.get("compliance_status", "").strip()
        if compliance_status:
            vendors = vendors.filter(compliance_status=compliance_status)

        serializer = VendorListSerializer(vendors.order_by("name"), many=True)
        logger.info(
            "Vendors list fetched",
            extra={"count": len(serializer.data), "search": search, "compliance_status": compliance_status}
        )
        return Response(serializer.data)

    def post(self, request):
        serializer = VendorCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

        try:
            vendor = serializer.save()
        except Exception:
            logger.exception("Vendor creation failed")
            return Response(
                {"error": "Failed to create vendor"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        logger.info("Vendor created", extra={"vendor_id": str(vendor.id)})
        return Response(VendorComplianceSerializer(vendor).data, status=status.HTTP_201_CREATED)


class VendorComplianceView(APIView):
    permission_classes = [IsAuthenticatedUser]

    def get(self, request, vendor_id):
        try:
            vendor = Vendor.objects.get(id=vendor_id)
        except Vendor.DoesNotExist:
            logger.warning("Vendor not found", extra={"vendor_id": str(vendor_id)})
            return Response({"error": "Vendor not found"}, status=status.HTTP_404_NOT_FOUND)

        if not SameVendor().has_object_permission(request, self, vendor):
            return Response({"error": "Access denied"}, status=status.HTTP_403_FORBIDDEN)

        return Response(VendorComplianceSerializer(vendor).data)

    def post(self, request, vendor_id):
        """Force a full recompute of the vendor aggregate."""
        if not IsReviewer().has_permission(request, self):
            return Response({"error": "Access denied"}, status=status.HTTP_403_FORBIDDEN)

        try:
            vendor = RiskScorer().calculate_vendor_score(vendor_id)
        except Exception:
            logger.exception("Vendor score recalculation failed", extra={"vendor_id": str(vendor_id)})
            return Response(
                {"error": "Failed to recalculate compliance score"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        if vendor is None:
            return Response({"error": "Vendor not found"}, status=status.HTTP_404_NOT_FOUND)

        logger.info(
            "Vendor score recalculated",
            extra={"vendor_id": str(vendor.id), "score": vendor.overall_compliance_score}
        )
        return Response(VendorComplianceSerializer(vendor).data)


class VendorChecklistView(APIView):
    """One row per catalog entry with the status of the vendor's latest upload for it."""

    permission_classes = [IsAuthenticatedUser]

    def get(self, request, vendor_id):
        try:
            vendor = Vendor.objects.get(id=vendor_id)
        except Vendor.DoesNotExist:
            return Response({"error": "Vendor not found"}, status=status.HTTP_404_NOT_FOUND)

        if not SameVendor().has_object_permission(request, self, vendor):
            return Response({"error": "Access denied"}, status=status.HTTP_403_FORBIDDEN)

        try:
            latest = {}
            uploads = UploadedDocument.objects.filter(vendor=vendor).order_by("-uploaded_at")
            for upload in uploads:
                latest.setdefault(upload.compliance_document_id, upload)

            checklist = []
            for entry in ComplianceDocument.objects.all():
                upload = latest.get(entry.id)
                checklist.append({
                    "compliance_document_id": str(entry.id),
                    "name": entry.name,
                    "pillar": entry.pillar,
                    "document_id": str(upload.id) if upload else None,
                    "verification_status": upload.verification_status if upload else "MISSING",
                    "risk_score": upload.risk_score if upload else 0.0,
                    "expiry_date": upload.expiry_date if upload else None,
                })

            verified = sum(1 for item in checklist if item["verification_status"] == "VERIFIED")

            return Response({
                "vendor_id": str(vendor.id),
                "total_required": len(checklist),
                "verified": verified,
                "items": checklist,
            })

        except Exception:
            logger.exception("Failed to build checklist", extra={"vendor_id": str(vendor_id)})
            return Response(
                {"error": "Failed to build compliance checklist"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )
