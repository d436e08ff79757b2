from rest_framework import serializers

from vendors.models import VerificationStatus
from .models import AIAuditLog


class AIAuditLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = AIAuditLog
        fields = [
            'id', 'document_type',
            'prompt_sent', 'raw_response', 'parsed_response',
            'model_used', 'success', 'error_message',
            'response_time_ms', 'created_at'
        ]


class ManualReviewSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[
        VerificationStatus.VERIFIED,
        VerificationStatus.REJECTED,
        VerificationStatus.PENDING_MANUAL_REVIEW,
        VerificationStatus.EXPIRED,
    ])
    note = serializers.CharField(required=False, allow_blank=True, max_length=2000)
