import uuid
from django.db import models


class AIAuditLog(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    document = models.ForeignKey('vendors.UploadedDocument', on_delete=models.CASCADE, related_name='audit_logs')

    document_type = models.CharField(max_length=255, blank=True)
    prompt_sent = models.TextField()
    raw_response = models.TextField(blank=True)
    parsed_response = models.JSONField(default=dict, blank=True)

    model_used = models.CharField(max_length=100, default='models/gemini-2.5-flash')
    success = models.BooleanField(default=True)
    error_message = models.TextField(blank=True)
    response_time_ms = models.IntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'ai_audit_logs'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.document_type or self.document_id} ({'ok' if self.success else 'failed'})"
