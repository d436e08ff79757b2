import io
import logging

import pytesseract
from django.core.files.storage import default_storage
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError
from PIL import Image, UnidentifiedImageError

from .ocr_client import OCRClient
from ..exceptions import ExtractionError

logger = logging.getLogger(__name__)

PDF_MIME = 'application/pdf'
SUPPORTED_IMAGE_MIMES = {'image/jpeg', 'image/png', 'image/tiff', 'image/bmp', 'image/gif', 'image/webp'}

OCR_ERRORS = (
    pytesseract.TesseractError,
    pytesseract.TesseractNotFoundError,
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFSyntaxError,
    OSError,
)


def detect_mime(data):
    """MIME type from the file signature, or None when unrecognised."""
    if not data:
        return None

    if data[:5] == b'%PDF-':
        return PDF_MIME

    try:
        with Image.open(io.BytesIO(data)) as img:
            return Image.MIME.get(img.format)
    except (UnidentifiedImageError, OSError):
        return None


def read_stored_file(file_path, storage=None):
    storage = storage or default_storage
    try:
        with storage.open(file_path, 'rb') as fh:
            return fh.read()
    except (FileNotFoundError, OSError) as e:
        logger.error("read_stored_file: cannot open %s - %s", file_path, e)
        raise ExtractionError(f"File not accessible: {file_path}") from e


class TextExtractionGateway:

    def __init__(self, ocr_client=None, storage=None):
        self.ocr_client = ocr_client or OCRClient()
        self.storage = storage or default_storage

    def extract_text(self, file_path):
        data = read_stored_file(file_path, self.storage)
        if not data:
            raise ExtractionError(f"File is empty: {file_path}")

        mime = detect_mime(data)
        logger.info("extract_text: %s detected as %s (%d bytes)", file_path, mime, len(data))

        try:
            if mime == PDF_MIME:
                text = self.ocr_client.process_document(data)
            elif mime in SUPPORTED_IMAGE_MIMES:
                text = self.ocr_client.detect_text(data)
            else:
                raise ExtractionError(f"Unsupported file type: {mime or 'unknown'}")
        except OCR_ERRORS as e:
            logger.exception("extract_text: OCR failed for %s", file_path)
            raise ExtractionError(f"OCR failed: {e}") from e

        if not text or not text.strip():
            logger.warning("extract_text: no text detected in %s", file_path)
            raise ExtractionError("No text detected in document")

        return text.strip()
