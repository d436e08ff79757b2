import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from vendors.models import ComplianceDocument, DocumentHistory, UploadedDocument, Vendor
from verification.services.risk_scorer import (
    RiskScorer, aggregate_score, compliance_status_for, document_score, history_multiplier,
)


@pytest.mark.parametrize("rejections, multiplier", [(0, 1.0), (1, 0.9), (2, 0.75), (3, 0.5), (7, 0.5)])
def test_history_multiplier(rejections, multiplier):
    assert history_multiplier(rejections) == multiplier


@pytest.mark.parametrize("status, confidence, rejections, expected", [
    ("VERIFIED", 0.9, 0, 90.0),
    ("VERIFIED", 0.9, 1, 81.0),
    ("VERIFIED", None, 0, 100.0),
    ("VERIFIED", 1.0, 3, 50.0),
    ("PENDING", None, 0, 50.0),
    ("PENDING_API_VALIDATION", 0.8, 0, 60.0),
    ("PENDING_MANUAL_REVIEW", None, 2, 30.0),
    ("REJECTED", 0.99, 0, 0.0),
    ("EXPIRED", 1.0, 0, 0.0),
])
def test_document_score(status, confidence, rejections, expected):
    assert document_score(status, confidence, rejections) == pytest.approx(expected)


@pytest.mark.parametrize("score, status", [
    (100, "GREEN"), (85, "GREEN"), (84.999, "AMBER"), (60, "AMBER"), (59.999, "RED"), (0, "RED"),
])
def test_compliance_status_boundaries(score, status):
    assert compliance_status_for(score) == status


def test_aggregate_uses_pillar_weights():
    scored = [(100.0, "CHILD_LABOR_AGE_VERIFICATION"), (0.0, "ESI_PF_COVERAGE"), (50.0, "SOMETHING_NEW")]
    assert aggregate_score(scored) == pytest.approx((100 * 1.8 + 0 * 1.2 + 50 * 1.0) / 4.0)
    assert aggregate_score([]) == 0.0


@pytest.mark.django_db
class TestRiskScorer:

    def _verify_all(self, make_document, catalog, confidence=1.0):
        for name in catalog:
            make_document(name, status="VERIFIED", verification_details={"confidence_score": confidence})

    def test_all_eleven_verified_is_green_at_hundred(self, make_document, catalog, vendor):
        self._verify_all(make_document, catalog)

        vendor = RiskScorer().calculate_vendor_score(vendor.id)

        assert len(catalog) == 11
        assert vendor.overall_compliance_score == pytest.approx(100.0)
        assert vendor.compliance_status == "GREEN"
        assert vendor.last_scored_at is not None

    def test_no_uploads_is_red_at_zero(self, catalog, vendor):
        vendor = RiskScorer().calculate_vendor_score(vendor.id)

        assert vendor.overall_compliance_score == 0.0
        assert vendor.compliance_status == "RED"

    def test_empty_catalog_is_red_at_zero(self, vendor):
        assert not ComplianceDocument.objects.exists()

        vendor = RiskScorer().calculate_vendor_score(vendor.id)

        assert vendor.overall_compliance_score == 0.0
        assert vendor.compliance_status == "RED"

    def test_missing_types_count_against_the_vendor(self, make_document, catalog, vendor):
        make_document("TNPCB Consent", status="VERIFIED", verification_details={"confidence_score": 1.0})

        vendor = RiskScorer().calculate_vendor_score(vendor.id)

        assert vendor.overall_compliance_score == pytest.approx(100 * 1.3 / 15.0)

    def test_latest_upload_per_type_counts(self, make_document, catalog, vendor):
        self._verify_all(make_document, catalog)
        older = UploadedDocument.objects.get(compliance_document__name="Fire NOC")
        UploadedDocument.objects.filter(id=older.id).update(uploaded_at=timezone.now() - timedelta(days=30))
        make_document("Fire NOC", status="REJECTED")

        vendor = RiskScorer().calculate_vendor_score(vendor.id)

        assert vendor.overall_compliance_score == pytest.approx(100 * (15.0 - 1.5) / 15.0)
        assert vendor.compliance_status == "GREEN"

    def test_recompute_is_idempotent(self, make_document, catalog, vendor):
        make_document("GSTIN Certificate", status="PENDING")
        make_document("EPF Registration", status="VERIFIED", verification_details={"confidence_score": 0.7})
        scorer = RiskScorer()

        first = scorer.calculate_vendor_score(vendor.id).overall_compliance_score
        second = scorer.calculate_vendor_score(vendor.id).overall_compliance_score

        assert first == second

    def test_other_vendors_documents_are_ignored(self, make_document, catalog, vendor):
        other = Vendor.objects.create(name="Other Mills")
        self._verify_all(make_document, catalog)

        other = RiskScorer().calculate_vendor_score(other.id)

        assert other.overall_compliance_score == 0.0

    def test_document_score_reads_rejection_history(self, make_document):
        document = make_document(status="VERIFIED", verification_details={"confidence_score": 0.8})
        for previous in ("PENDING", "PENDING_MANUAL_REVIEW"):
            DocumentHistory.objects.create(
                document=document,
                action="LOCAL_VERIFY",
                previous_status=previous,
                new_status="REJECTED",
                verification_method="AI",
            )

        score = RiskScorer().calculate_document_score(document.id)

        document.refresh_from_db()
        assert score == pytest.approx(80 * 0.75)
        assert document.risk_score == pytest.approx(60.0)

    def test_unknown_ids_return_none(self):
        scorer = RiskScorer()
        assert scorer.calculate_vendor_score(uuid.uuid4()) is None
        assert scorer.calculate_document_score(uuid.uuid4()) is None
