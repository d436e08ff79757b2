import io

import pytest
from django.core.cache import caches
from django.core.files.base import ContentFile
from django.core.management import call_command
from PIL import Image

from vendors.models import ComplianceDocument, UploadedDocument, Vendor
from verification.services.layout_comparator import LayoutComparison
from verification.services.content_verifier import ContentVerdict


def png_bytes(size=(40, 20)):
    buf = io.BytesIO()
    Image.new("RGB", size, "white").save(buf, "PNG")
    return buf.getvalue()


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path / "media"
    settings.REFERENCE_DOCS_DIR = tmp_path / "reference_docs"
    settings.REGISTRY_STUB_MODE = True
    return settings.MEDIA_ROOT


@pytest.fixture(autouse=True)
def clear_registry_cache():
    caches["registry"].clear()
    yield
    caches["registry"].clear()


@pytest.fixture
def catalog(db):
    call_command("seed_compliance_documents", stdout=io.StringIO())
    return {doc.name: doc for doc in ComplianceDocument.objects.all()}


@pytest.fixture
def vendor(db):
    return Vendor.objects.create(name="Sri Lakshmi Textiles")


@pytest.fixture
def make_document(vendor, catalog):
    def _make(document_type="GSTIN Certificate", status="PENDING", target_vendor=None, **fields):
        return UploadedDocument.objects.create(
            vendor=target_vendor or vendor,
            compliance_document=catalog[document_type],
            file=ContentFile(png_bytes(), name="upload.png"),
            original_filename="upload.png",
            verification_status=status,
            **fields,
        )
    return _make


# ── pipeline fakes ─────────────────────────────────────────────────────────

class FakeExtractor:
    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def extract_text(self, file_path):
        self.calls.append(file_path)
        if self.error:
            raise self.error
        return self.text


class FakeContentVerifier:
    def __init__(self, verdict=None, error=None):
        self.verdict = verdict or ContentVerdict(
            is_valid=True,
            reason="Valid GSTIN certificate",
            confidence=0.92,
            extracted_fields={"gstin": "33ABCDE1234F1Z5", "validUntil": "31/12/2030"},
        )
        self.error = error
        self.calls = []
        self.identifier_formats = []

    def extract_document_info(self, text, document_type, document=None, expected_keywords=None,
                              identifier_format=""):
        self.calls.append((document_type, expected_keywords))
        self.identifier_formats.append(identifier_format)
        if self.error:
            raise self.error
        return self.verdict


class FakeLayoutComparator:
    def __init__(self, similarity=0.9):
        self.similarity = similarity
        self.calls = []

    def compare_with_reference(self, uploaded_path, reference_path):
        self.calls.append((uploaded_path, reference_path))
        return LayoutComparison(
            similarity=self.similarity,
            structure_similarity=self.similarity,
            layout_similarity=self.similarity,
            details=f"Document similarity: {round(self.similarity * 100)}%",
        )


class RecordingDispatcher:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def __call__(self, document_id, actor):
        self.calls.append((document_id, actor))
        if self.error:
            raise self.error
        return f"task-{document_id}"


@pytest.fixture
def fakes():
    class Fakes:
        Extractor = FakeExtractor
        ContentVerifier = FakeContentVerifier
        LayoutComparator = FakeLayoutComparator
        Dispatcher = RecordingDispatcher
    return Fakes
