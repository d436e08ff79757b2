import pytest
from django.core.files.base import ContentFile
from django.core.files.storage import FileSystemStorage

from verification.exceptions import ExtractionError
from verification.services.layout_comparator import (
    LayoutComparator, blocks_match, position_similarity,
)
from verification.services.ocr_client import BlockLayout, TextBlock
from verification.services.strategies import (
    GENERIC_STRATEGY, KeywordRules, evaluate_keywords, get_strategy, resolve_reference_image,
)
from verification.services.text_extractor import PDF_MIME, TextExtractionGateway, detect_mime

from .conftest import png_bytes


class FakeOCR:
    def __init__(self, text="Registration Certificate", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def detect_text(self, data):
        self.calls.append("image")
        if self.error:
            raise self.error
        return self.text

    def process_document(self, data):
        self.calls.append("pdf")
        if self.error:
            raise self.error
        return self.text


@pytest.fixture
def storage(tmp_path):
    return FileSystemStorage(location=str(tmp_path / "store"))


def stored(storage, name, data):
    return storage.save(name, ContentFile(data))


class TestTextExtractionGateway:

    def test_image_goes_through_image_ocr(self, storage):
        ocr = FakeOCR(text="  GSTIN 33ABCDE1234F1Z5 \n")
        path = stored(storage, "gst.png", png_bytes())

        text = TextExtractionGateway(ocr_client=ocr, storage=storage).extract_text(path)

        assert text == "GSTIN 33ABCDE1234F1Z5"
        assert ocr.calls == ["image"]

    def test_pdf_goes_through_page_ocr(self, storage):
        ocr = FakeOCR()
        path = stored(storage, "doc.pdf", b"%PDF-1.4\n%fake body")

        TextExtractionGateway(ocr_client=ocr, storage=storage).extract_text(path)

        assert ocr.calls == ["pdf"]

    def test_unsupported_type(self, storage):
        path = stored(storage, "notes.txt", b"plain text is not a scan")

        with pytest.raises(ExtractionError, match="Unsupported file type: unknown"):
            TextExtractionGateway(ocr_client=FakeOCR(), storage=storage).extract_text(path)

    def test_empty_file(self, storage):
        path = stored(storage, "empty.png", b"")

        with pytest.raises(ExtractionError, match="File is empty"):
            TextExtractionGateway(ocr_client=FakeOCR(), storage=storage).extract_text(path)

    def test_missing_file(self, storage):
        with pytest.raises(ExtractionError, match="File not accessible"):
            TextExtractionGateway(ocr_client=FakeOCR(), storage=storage).extract_text("nope.png")

    def test_ocr_failure_is_wrapped(self, storage):
        path = stored(storage, "gst.png", png_bytes())
        ocr = FakeOCR(error=OSError("tesseract crashed"))

        with pytest.raises(ExtractionError, match="OCR failed: tesseract crashed"):
            TextExtractionGateway(ocr_client=ocr, storage=storage).extract_text(path)

    def test_blank_ocr_output(self, storage):
        path = stored(storage, "gst.png", png_bytes())

        with pytest.raises(ExtractionError, match="No text detected in document"):
            TextExtractionGateway(ocr_client=FakeOCR(text="   \n"), storage=storage).extract_text(path)


def test_detect_mime():
    assert detect_mime(b"%PDF-1.7 ...") == PDF_MIME
    assert detect_mime(png_bytes()) == "image/png"
    assert detect_mime(b"GIF? no") is None
    assert detect_mime(b"") is None


def page(*blocks, width=1000, height=1400):
    return BlockLayout(width=width, height=height, blocks=[TextBlock(*b) for b in blocks])


REFERENCE = page(
    ("Goods and Services Tax Registration Certificate", 100, 50, 800, 60),
    ("Legal Name of Business", 100, 300, 400, 40),
    ("Principal Place of Business", 100, 500, 400, 40),
    ("Date of Liability", 100, 700, 400, 40),
)


class TestLayoutComparator:

    def comparator(self):
        return LayoutComparator(ocr_client=object(), storage=object())

    def test_identical_layout_scores_full(self):
        result = self.comparator().compare_layouts(REFERENCE, REFERENCE)

        assert result.similarity == pytest.approx(1.0)
        assert result.details == "Document similarity: 100% (Structure: 100%, Layout: 100%)"

    def test_scaled_scan_still_aligns(self):
        scaled = page(*[(b.text, b.left * 2, b.top * 2, b.width * 2, b.height * 2) for b in REFERENCE.blocks],
                      width=2000, height=2800)

        assert self.comparator().compare_layouts(scaled, REFERENCE).similarity == pytest.approx(1.0)

    def test_unrelated_document_scores_zero(self):
        other = page(("Invoice No 4411", 600, 1200, 200, 40), ("Total Amount Due", 600, 1300, 200, 40))

        result = self.comparator().compare_layouts(other, REFERENCE)

        assert result.structure_similarity == 0.0
        assert result.layout_similarity == 0.0
        assert result.similarity == 0.0

    def test_matched_text_in_wrong_place(self):
        moved = page(
            ("Goods and Services Tax Registration Certificate", 100, 50, 800, 60),
            ("Legal Name of Business", 100, 300, 400, 40),
            ("Principal Place of Business", 900, 1350, 50, 20),
            ("Date of Liability", 900, 1380, 50, 10),
        )
        result = self.comparator().compare_layouts(moved, REFERENCE)

        assert result.structure_similarity == 1.0
        assert result.layout_similarity == pytest.approx(0.5)
        assert result.similarity == pytest.approx(0.4 + 0.6 * 0.5)

    def test_missing_reference_is_skipped(self):
        result = self.comparator().compare_with_reference("any/path.png", None)

        assert result.skipped is True
        assert result.similarity == 1.0

    def test_block_matching_threshold(self):
        assert blocks_match("Legal Name of Business", "legal name of business")
        assert not blocks_match("Legal Name", "Trade Name of Business")
        assert not blocks_match("", "")

    def test_position_similarity_bounds(self):
        corner = TextBlock("a", 0, 0, 0, 0)
        far = TextBlock("a", 100, 100, 0, 0)
        assert position_similarity(corner, (100, 100), corner, (100, 100)) == 1.0
        assert position_similarity(corner, (100, 100), far, (100, 100)) == pytest.approx(0.0)
        assert position_similarity(corner, (0, 0), corner, (100, 100)) == 0.0


class TestStrategies:

    def test_lookup_is_case_insensitive_and_alias_aware(self):
        assert get_strategy("gstin certificate").name == "GSTIN Certificate"
        assert get_strategy("Incorporation Certificate").name == "Certificate of Incorporation"
        assert get_strategy("Canteen Menu") is GENERIC_STRATEGY

    def test_layout_declared_only_for_standard_forms(self):
        assert get_strategy("Fire NOC").has_layout
        assert get_strategy("Fire NOC").layout_threshold == 0.70
        assert not get_strategy("ISO 9001").has_layout
        assert not GENERIC_STRATEGY.has_layout

    def test_keyword_rules(self):
        rules = KeywordRules(required=("FACTORY LICENSE",), any_of=("Renewal", "Form 4"), patterns=(r"TN/\d{4}/\d{4}",))

        assert not evaluate_keywords(rules, "license").passed
        missing_any = evaluate_keywords(rules, "Factory License issued")
        assert missing_any.reason == "Document appears to be incorrect. Must contain at least one of: Renewal, Form 4"
        assert evaluate_keywords(rules, "FACTORY LICENSE Renewal").reason == (
            "Document appears to be incorrect. Required format not found."
        )
        assert evaluate_keywords(rules, "factory license renewal TN/1234/2020").passed
        assert evaluate_keywords(None, "").passed

    def test_reference_image_resolution(self, tmp_path):
        strategy = get_strategy("ESIC Registration")
        assert resolve_reference_image(strategy, tmp_path) is None

        (tmp_path / "esic.jpg").write_bytes(b"jpeg")
        assert resolve_reference_image(strategy, tmp_path) == tmp_path / "esic.jpg"
        assert resolve_reference_image(get_strategy("ISO 9001"), tmp_path) is None
