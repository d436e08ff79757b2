import logging

from rest_framework.views import APIView
from rest_framework.response import Response

from accounts.permissions import IsAuthenticatedUser
from vendors.models import ComplianceDocument
from vendors.serializers.compliance_serializers import ComplianceDocumentSerializer

logger = logging.getLogger("vendors.config_views")


class ComplianceDocumentListView(APIView):
    permission_classes = [IsAuthenticatedUser]

    def get(self, request):
        documents = ComplianceDocument.objects.all().order_by("pillar", "name")

        pillar = request.query_params.get("pillar", "").strip()
        if pillar:
            documents = documents.filter(pillar=pillar)

        return Response(ComplianceDocumentSerializer(documents, many=True).data)
