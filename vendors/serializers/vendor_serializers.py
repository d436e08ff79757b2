from rest_framework import serializers
from vendors.models import Vendor


class VendorListSerializer(serializers.ModelSerializer):
    document_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Vendor
        fields = [
            "id",
            "name",
            "overall_compliance_score",
            "compliance_status",
            "last_scored_at",
            "document_count",
        ]


class VendorComplianceSerializer(serializers.ModelSerializer):
    overall_compliance_score = serializers.SerializerMethodField()

    class Meta:
        model = Vendor
        fields = [
            "id",
            "name",
            "overall_compliance_score",
            "compliance_status",
            "last_scored_at",
        ]

    def get_overall_compliance_score(self, obj):
        return round(obj.overall_compliance_score or 0, 2)


class VendorCreateSerializer(serializers.ModelSerializer):

    class Meta:
        model = Vendor
        fields = ["name"]

    def validate_name(self, value):
        if not value or not value.strip():
            raise serializers.ValidationError("Vendor name cannot be empty")
        return value.strip()
