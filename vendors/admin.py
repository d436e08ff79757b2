from django.contrib import admin
from vendors.models import ComplianceDocument, DocumentHistory, UploadedDocument, Vendor


@admin.register(ComplianceDocument)
class ComplianceDocumentAdmin(admin.ModelAdmin):
    list_display = ["name", "pillar", "issuing_authority"]
    list_filter = ["pillar"]
    search_fields = ["name"]


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ["name", "overall_compliance_score", "compliance_status", "last_scored_at"]
    list_filter = ["compliance_status"]
    search_fields = ["name"]
    readonly_fields = ["overall_compliance_score", "compliance_status", "last_scored_at"]


class DocumentHistoryInline(admin.TabularInline):
    model = DocumentHistory
    extra = 0
    can_delete = False
    readonly_fields = [
        "action", "details", "changed_by", "actor_role",
        "previous_status", "new_status", "verification_method", "timestamp",
    ]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(UploadedDocument)
class UploadedDocumentAdmin(admin.ModelAdmin):
    list_display = ["vendor", "compliance_document", "verification_status", "risk_score", "uploaded_at"]
    list_filter = ["verification_status", "compliance_document__pillar"]
    search_fields = ["vendor__name", "compliance_document__name"]
    readonly_fields = ["risk_score", "uploaded_at", "last_verified_at"]
    inlines = [DocumentHistoryInline]
