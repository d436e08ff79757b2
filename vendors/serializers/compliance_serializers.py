from rest_framework import serializers
from vendors.models import ComplianceDocument


class ComplianceDocumentSerializer(serializers.ModelSerializer):
    class Meta:
        model = ComplianceDocument
        fields = [
            "id",
            "name",
            "pillar",
            "description",
            "issuing_authority",
            "required_keywords",
            "optional_keywords",
        ]
