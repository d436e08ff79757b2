import io
import logging
from dataclasses import dataclass, field
from typing import List

import pytesseract
from django.conf import settings
from PIL import Image
from pdf2image import convert_from_bytes

logger = logging.getLogger(__name__)


@dataclass
class TextBlock:
    text: str
    left: int
    top: int
    width: int
    height: int

    @property
    def center(self):
        return self.left + self.width / 2.0, self.top + self.height / 2.0


@dataclass
class BlockLayout:
    width: int
    height: int
    blocks: List[TextBlock] = field(default_factory=list)


class OCRClient:

    def __init__(self, dpi=None):
        if settings.TESSERACT_CMD:
            pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD
        self.dpi = dpi or settings.OCR_PDF_DPI

    def detect_text(self, image_bytes):
        img = self._open_image(image_bytes)
        text = pytesseract.image_to_string(img)
        logger.info("detect_text: %d chars from %dx%d image", len(text), img.width, img.height)
        return text

    def process_document(self, pdf_bytes):
        pages = convert_from_bytes(pdf_bytes, dpi=self.dpi)
        if not pages:
            logger.warning("process_document: no pages rendered")
            return ""

        texts = []
        for index, page in enumerate(pages, start=1):
            page_text = pytesseract.image_to_string(page)
            logger.debug("process_document: page %d -> %d chars", index, len(page_text))
            texts.append(page_text)

        logger.info("process_document: %d pages processed", len(pages))
        return "\n".join(texts)

    def detect_blocks(self, data, is_pdf=False):
        """OCR the first page and group recognised words into positioned blocks."""
        if is_pdf:
            pages = convert_from_bytes(data, dpi=self.dpi, first_page=1, last_page=1)
            if not pages:
                return BlockLayout(width=0, height=0)
            img = pages[0]
        else:
            img = self._open_image(data)

        raw = pytesseract.image_to_data(img, output_type=pytesseract.Output.DICT)

        grouped = {}
        for i, word in enumerate(raw.get("text", [])):
            word = (word or "").strip()
            if not word:
                continue

            key = (raw["page_num"][i], raw["block_num"][i])
            left, top = raw["left"][i], raw["top"][i]
            right, bottom = left + raw["width"][i], top + raw["height"][i]

            if key not in grouped:
                grouped[key] = [[word], left, top, right, bottom]
                continue

            entry = grouped[key]
            entry[0].append(word)
            entry[1] = min(entry[1], left)
            entry[2] = min(entry[2], top)
            entry[3] = max(entry[3], right)
            entry[4] = max(entry[4], bottom)

        blocks = [
            TextBlock(
                text=" ".join(words),
                left=left,
                top=top,
                width=right - left,
                height=bottom - top,
            )
            for words, left, top, right, bottom in grouped.values()
        ]

        logger.info("detect_blocks: %d blocks on %dx%d page", len(blocks), img.width, img.height)
        return BlockLayout(width=img.width, height=img.height, blocks=blocks)

    def _open_image(self, image_bytes):
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        return img
