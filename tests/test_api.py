from unittest import mock

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from rest_framework.test import APIClient

from accounts.models import User
from vendors.models import DocumentHistory, UploadedDocument, Vendor

from .conftest import png_bytes

pytestmark = pytest.mark.django_db


@pytest.fixture
def vendor_admin(vendor):
    return User.objects.create_user(
        "owner@lakshmitextiles.in", "s3cret-pass", role=User.Role.VENDOR_ADMIN, vendor=vendor,
    )


@pytest.fixture
def reviewer(db):
    return User.objects.create_user("reviewer@vendorcheck.in", "s3cret-pass", role=User.Role.REVIEWER)


@pytest.fixture
def outsider(db):
    other = Vendor.objects.create(name="Other Mills")
    return User.objects.create_user("someone@othermills.in", "s3cret-pass", role=User.Role.VENDOR_USER, vendor=other)


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def queued():
    with mock.patch("vendors.views.document_views.process_document_async") as task:
        task.delay.return_value.id = "task-123"
        yield task


class TestUpload:

    def _post(self, user, vendor, compliance_document, upload):
        return client_for(user).post(
            reverse("vendor-documents", kwargs={"vendor_id": vendor.id}),
            {"file": upload, "compliance_document": str(compliance_document.id)},
            format="multipart",
        )

    def test_upload_stores_pending_document_and_queues_verification(self, vendor_admin, vendor, catalog, queued):
        upload = SimpleUploadedFile("gstin.png", png_bytes(), content_type="image/png")

        response = self._post(vendor_admin, vendor, catalog["GSTIN Certificate"], upload)

        assert response.status_code == 201
        assert response.data["task_id"] == "task-123"
        assert response.data["verification_status"] == "PENDING"

        document = UploadedDocument.objects.get(id=response.data["id"])
        assert document.original_filename == "gstin.png"
        assert DocumentHistory.objects.filter(document=document).count() == 0
        queued.delay.assert_called_once_with(
            str(document.id),
            {"user_id": str(vendor_admin.id), "vendor_id": str(vendor.id), "role": "VENDOR_ADMIN"},
        )

    def test_unqueued_upload_goes_to_manual_review(self, vendor_admin, reviewer, vendor, catalog, queued):
        queued.delay.side_effect = ConnectionError("broker unreachable")
        upload = SimpleUploadedFile("gstin.png", png_bytes(), content_type="image/png")

        response = self._post(vendor_admin, vendor, catalog["GSTIN Certificate"], upload)

        assert response.status_code == 201
        assert response.data["task_id"] is None
        assert response.data["verification_status"] == "PENDING_MANUAL_REVIEW"

        document = UploadedDocument.objects.get(id=response.data["id"])
        assert document.verification_summary == "broker unreachable"
        row = DocumentHistory.objects.get(document=document)
        assert (row.action, row.previous_status, row.new_status, row.changed_by) == (
            "LOCAL_VERIFY_FAIL", "PENDING", "PENDING_MANUAL_REVIEW", str(vendor_admin.id),
        )
        assert row.details == "Verification could not be started: broker unreachable"

        queue = client_for(reviewer).get(reverse("review-list"))
        assert [d["id"] for d in queue.data] == [str(document.id)]

    def test_unsupported_file_is_rejected(self, vendor_admin, vendor, catalog, queued):
        upload = SimpleUploadedFile("notes.txt", b"just some text", content_type="text/plain")

        response = self._post(vendor_admin, vendor, catalog["Fire NOC"], upload)

        assert response.status_code == 400
        assert "file" in response.data["error"]
        assert not UploadedDocument.objects.exists()
        queued.delay.assert_not_called()

    def test_other_vendor_cannot_upload(self, outsider, vendor, catalog, queued):
        upload = SimpleUploadedFile("gstin.png", png_bytes(), content_type="image/png")

        response = self._post(outsider, vendor, catalog["GSTIN Certificate"], upload)

        assert response.status_code == 403
        assert response.data == {"error": "Access denied"}

    def test_anonymous_is_refused(self, vendor, catalog):
        response = APIClient().get(reverse("vendor-documents", kwargs={"vendor_id": vendor.id}))
        assert response.status_code in (401, 403)


class TestDocumentEndpoints:

    def test_detail_includes_history(self, vendor_admin, make_document):
        document = make_document(status="PENDING_MANUAL_REVIEW")
        DocumentHistory.objects.create(
            document=document, action="LOCAL_VERIFY_FAIL", details="Processing failed: No text detected in document",
            previous_status="PENDING", new_status="PENDING_MANUAL_REVIEW", verification_method="LOCAL",
        )

        response = client_for(vendor_admin).get(reverse("document-detail", kwargs={"document_id": document.id}))

        assert response.status_code == 200
        assert response.data["document_type"] == "GSTIN Certificate"
        assert [h["action"] for h in response.data["history"]] == ["LOCAL_VERIFY_FAIL"]

    def test_detail_hidden_from_other_vendor(self, outsider, make_document):
        document = make_document()
        response = client_for(outsider).get(reverse("document-detail", kwargs={"document_id": document.id}))
        assert response.status_code == 403

    def test_list_filters_by_status(self, vendor_admin, vendor, make_document):
        make_document(status="VERIFIED")
        make_document("Fire NOC", status="REJECTED")

        response = client_for(vendor_admin).get(
            reverse("vendor-documents", kwargs={"vendor_id": vendor.id}), {"status": "REJECTED"}
        )

        assert response.status_code == 200
        assert response.data["count"] == 1
        assert response.data["results"][0]["document_type"] == "Fire NOC"

    def test_reverify_queues_task(self, vendor_admin, make_document, queued):
        document = make_document(status="REJECTED")

        response = client_for(vendor_admin).post(reverse("document-reverify", kwargs={"document_id": document.id}))

        assert response.status_code == 202
        assert response.data["task_id"] == "task-123"
        queued.delay.assert_called_once()


class TestManualReview:

    def _resolve(self, user, document, payload):
        return client_for(user).post(
            reverse("review-resolve", kwargs={"document_id": document.id}), payload, format="json",
        )

    def test_reviewer_can_verify(self, reviewer, make_document):
        document = make_document(status="PENDING_MANUAL_REVIEW")

        response = self._resolve(reviewer, document, {"status": "VERIFIED", "note": "Matches physical copy"})

        assert response.status_code == 200
        assert response.data["verification_status"] == "VERIFIED"
        assert response.data["confidence_score"] == 1.0
        row = DocumentHistory.objects.get(document=document)
        assert (row.action, row.verification_method, row.changed_by) == ("MANUAL_REVIEW", "MANUAL", str(reviewer.id))

    def test_vendor_cannot_review(self, vendor_admin, make_document):
        document = make_document(status="PENDING_MANUAL_REVIEW")
        response = self._resolve(vendor_admin, document, {"status": "VERIFIED"})
        assert response.status_code == 403
        assert not DocumentHistory.objects.exists()

    def test_invalid_status(self, reviewer, make_document):
        document = make_document(status="PENDING_MANUAL_REVIEW")
        response = self._resolve(reviewer, document, {"status": "APPROVED"})
        assert response.status_code == 400

    def test_queue_lists_manual_review_documents(self, reviewer, make_document):
        waiting = make_document(status="PENDING_MANUAL_REVIEW")
        make_document("Fire NOC", status="VERIFIED")

        response = client_for(reviewer).get(reverse("review-list"))

        assert response.status_code == 200
        assert [d["id"] for d in response.data] == [str(waiting.id)]


class TestVendorCompliance:

    def test_compliance_and_recalculation(self, reviewer, vendor, make_document):
        make_document(status="VERIFIED", verification_details={"confidence_score": 1.0})
        url = reverse("vendor-compliance", kwargs={"vendor_id": vendor.id})

        response = client_for(reviewer).post(url)

        assert response.status_code == 200
        assert response.data["overall_compliance_score"] == pytest.approx(10.0)
        assert response.data["compliance_status"] == "RED"
        assert client_for(reviewer).get(url).data["overall_compliance_score"] == pytest.approx(10.0)

    def test_vendor_cannot_force_recalculation(self, vendor_admin, vendor):
        url = reverse("vendor-compliance", kwargs={"vendor_id": vendor.id})
        assert client_for(vendor_admin).post(url).status_code == 403

    def test_checklist_covers_whole_catalog(self, vendor_admin, vendor, make_document):
        make_document(status="VERIFIED")

        response = client_for(vendor_admin).get(reverse("vendor-checklist", kwargs={"vendor_id": vendor.id}))

        assert response.status_code == 200
        assert response.data["total_required"] == 11
        assert response.data["verified"] == 1
        statuses = {item["name"]: item["verification_status"] for item in response.data["items"]}
        assert statuses["GSTIN Certificate"] == "VERIFIED"
        assert statuses["Fire NOC"] == "MISSING"


class TestDirectoryEndpoints:

    def test_catalog_listing_filters_by_pillar(self, vendor_admin, catalog):
        response = client_for(vendor_admin).get(
            reverse("compliance-document-list"), {"pillar": "ENVIRONMENTAL"}
        )

        assert response.status_code == 200
        assert {d["name"] for d in response.data} == {"TNPCB Consent", "GOTS Certificate", "OEKO-TEX Certificate"}

    def test_vendor_member_only_sees_own_vendor(self, vendor_admin, outsider, vendor):
        response = client_for(vendor_admin).get(reverse("vendor-list-create"))

        assert response.status_code == 200
        assert [v["id"] for v in response.data] == [str(vendor.id)]

    def test_only_reviewers_create_vendors(self, reviewer, vendor_admin):
        url = reverse("vendor-list-create")

        assert client_for(vendor_admin).post(url, {"name": "New Mills"}, format="json").status_code == 403
        response = client_for(reviewer).post(url, {"name": "  New Mills  "}, format="json")

        assert response.status_code == 201
        assert response.data["name"] == "New Mills"
        assert response.data["compliance_status"] == "RED"

    def test_me(self, vendor_admin, vendor):
        response = client_for(vendor_admin).get(reverse("user-me"))

        assert response.status_code == 200
        assert response.data["role"] == "VENDOR_ADMIN"
        assert response.data["vendor_id"] == str(vendor.id)

    def test_review_statistics(self, reviewer, make_document):
        make_document(status="PENDING_MANUAL_REVIEW")
        make_document("Fire NOC", status="VERIFIED")

        response = client_for(reviewer).get(reverse("review-statistics"))

        assert response.status_code == 200
        assert response.data["PENDING_MANUAL_REVIEW"] == 1
        assert response.data["VERIFIED"] == 1
        assert response.data["EXPIRED"] == 0
