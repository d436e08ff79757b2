from django.contrib import admin
from .models import AIAuditLog


@admin.register(AIAuditLog)
class AIAuditLogAdmin(admin.ModelAdmin):
    list_display = ['document', 'document_type', 'model_used', 'success', 'response_time_ms', 'created_at']
    list_filter = ['document_type', 'success']
    search_fields = ['document__vendor__name']
    readonly_fields = ['created_at']
