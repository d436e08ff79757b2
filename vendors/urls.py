from django.urls import path
from vendors.views.config_views import ComplianceDocumentListView
from vendors.views.vendor_views import (
    VendorListCreateView,
    VendorComplianceView,
    VendorChecklistView,
)
from vendors.views.document_views import (
    VendorDocumentListCreateView,
    DocumentDetailView,
    DocumentReverifyView,
)

urlpatterns = [
    # Catalog
    path("compliance-documents/", ComplianceDocumentListView.as_view(), name="compliance-document-list"),

    # Vendors
    path("", VendorListCreateView.as_view(), name="vendor-list-create"),
    path("<uuid:vendor_id>/compliance/", VendorComplianceView.as_view(), name="vendor-compliance"),
    path("<uuid:vendor_id>/checklist/", VendorChecklistView.as_view(), name="vendor-checklist"),
    path("<uuid:vendor_id>/documents/", VendorDocumentListCreateView.as_view(), name="vendor-documents"),

    # Documents
    path("documents/<uuid:document_id>/", DocumentDetailView.as_view(), name="document-detail"),
    path("documents/<uuid:document_id>/verify/", DocumentReverifyView.as_view(), name="document-reverify"),
]
