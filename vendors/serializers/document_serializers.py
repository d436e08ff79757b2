from rest_framework import serializers
from vendors.models import ComplianceDocument, DocumentHistory, UploadedDocument
from verification.services.text_extractor import detect_mime

MAX_UPLOAD_SIZE = 10 * 1024 * 1024


class DocumentHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = DocumentHistory
        fields = [
            "id",
            "action",
            "details",
            "changed_by",
            "actor_role",
            "previous_status",
            "new_status",
            "verification_method",
            "timestamp",
        ]


class DocumentListSerializer(serializers.ModelSerializer):
    document_type = serializers.CharField(source='compliance_document.name', read_only=True)
    pillar = serializers.CharField(source='compliance_document.pillar', read_only=True)
    vendor_id = serializers.UUIDField(source='vendor.id', read_only=True)
    vendor_name = serializers.CharField(source='vendor.name', read_only=True)
    confidence_score = serializers.FloatField(read_only=True)

    class Meta:
        model = UploadedDocument
        fields = [
            'id',
            'vendor_id',
            'vendor_name',
            'document_type',
            'pillar',
            'original_filename',
            'verification_status',
            'verification_summary',
            'confidence_score',
            'risk_score',
            'expiry_date',
            'uploaded_at',
            'last_verified_at',
        ]


class DocumentDetailSerializer(DocumentListSerializer):
    history = DocumentHistorySerializer(many=True, read_only=True)

    class Meta(DocumentListSerializer.Meta):
        fields = DocumentListSerializer.Meta.fields + [
            'extracted_data',
            'verification_details',
            'api_verification_id',
            'history',
        ]


class DocumentUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    compliance_document = serializers.PrimaryKeyRelatedField(
        queryset=ComplianceDocument.objects.all(),
    )

    def validate_file(self, value):
        if value.size == 0:
            raise serializers.ValidationError("File is empty")
        if value.size > MAX_UPLOAD_SIZE:
            raise serializers.ValidationError("File exceeds the 10 MB upload limit")

        head = value.read()
        value.seek(0)
        if detect_mime(head) is None:
            raise serializers.ValidationError("Unsupported file type. Upload a PDF or an image.")
        return value

    def save(self):
        vendor = self.context["vendor"]
        upload = self.validated_data["file"]
        return UploadedDocument.objects.create(
            vendor=vendor,
            compliance_document=self.validated_data["compliance_document"],
            file=upload,
            original_filename=upload.name,
        )

