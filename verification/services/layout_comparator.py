import logging
import math
from dataclasses import dataclass
from pathlib import Path

from django.core.files.storage import default_storage

from .ocr_client import OCRClient
from .text_extractor import OCR_ERRORS, PDF_MIME, detect_mime, read_stored_file
from ..constants import (
    BLOCK_MATCH_RATIO, POSITION_SIMILARITY_MIN, STRUCTURE_WEIGHT, LAYOUT_WEIGHT,
)
from ..exceptions import ExtractionError

logger = logging.getLogger(__name__)

MAX_NORMALISED_DISTANCE = math.sqrt(2)


@dataclass
class LayoutComparison:
    similarity: float
    structure_similarity: float = 0.0
    layout_similarity: float = 0.0
    details: str = ''
    skipped: bool = False


def skipped_comparison(reason):
    return LayoutComparison(
        similarity=1.0,
        structure_similarity=1.0,
        layout_similarity=1.0,
        details=reason,
        skipped=True,
    )


def blocks_match(text_a, text_b):
    words_a = text_a.lower().split()
    words_b = text_b.lower().split()
    total = max(len(words_a), len(words_b))
    if total == 0:
        return False
    common = [w for w in words_a if w in words_b]
    return len(common) / total > BLOCK_MATCH_RATIO


def position_similarity(block_a, size_a, block_b, size_b):
    """1 - normalised centre distance, where both pages are scaled to a unit square."""
    (ax, ay), (bx, by) = block_a.center, block_b.center
    wa, ha = size_a
    wb, hb = size_b
    if not (wa and ha and wb and hb):
        return 0.0

    dx = ax / wa - bx / wb
    dy = ay / ha - by / hb
    distance = math.sqrt(dx * dx + dy * dy)
    return max(0.0, 1 - distance / MAX_NORMALISED_DISTANCE)


class LayoutComparator:

    def __init__(self, ocr_client=None, storage=None):
        self.ocr_client = ocr_client or OCRClient()
        self.storage = storage or default_storage

    def compare_with_reference(self, uploaded_path, reference_path):
        if reference_path is None:
            return skipped_comparison("No reference layout for this document type")

        uploaded = self._layout(read_stored_file(uploaded_path, self.storage))
        reference = self._layout(self._read_reference(reference_path))

        return self.compare_layouts(uploaded, reference)

    def compare_layouts(self, uploaded, reference):
        if not reference.blocks:
            logger.warning("compare_layouts: reference has no text blocks")
            return LayoutComparison(similarity=0.0, details="Reference layout has no text blocks")

        pairs = []
        for ref_block in reference.blocks:
            for up_block in uploaded.blocks:
                if blocks_match(ref_block.text, up_block.text):
                    pairs.append((ref_block, up_block))
                    break

        structure = len(pairs) / len(reference.blocks)

        ref_size = (reference.width, reference.height)
        up_size = (uploaded.width, uploaded.height)
        aligned = sum(
            1 for ref_block, up_block in pairs
            if position_similarity(ref_block, ref_size, up_block, up_size) > POSITION_SIMILARITY_MIN
        )
        layout = aligned / len(pairs) if pairs else 0.0

        similarity = STRUCTURE_WEIGHT * structure + LAYOUT_WEIGHT * layout
        details = (
            f"Document similarity: {round(similarity * 100)}% "
            f"(Structure: {round(structure * 100)}%, Layout: {round(layout * 100)}%)"
        )
        logger.info("compare_layouts: %s", details)

        return LayoutComparison(
            similarity=similarity,
            structure_similarity=structure,
            layout_similarity=layout,
            details=details,
        )

    def _layout(self, data):
        mime = detect_mime(data)
        if mime is None:
            raise ExtractionError("Unsupported file type for layout comparison")
        try:
            return self.ocr_client.detect_blocks(data, is_pdf=(mime == PDF_MIME))
        except OCR_ERRORS as e:
            logger.exception("_layout: block detection failed")
            raise ExtractionError(f"Layout OCR failed: {e}") from e

    def _read_reference(self, reference_path):
        try:
            return Path(reference_path).read_bytes()
        except OSError as e:
            raise ExtractionError(f"Reference image not readable: {reference_path}") from e
