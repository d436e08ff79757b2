import logging
from dataclasses import dataclass, field

from .gemini_client import GeminiClient
from .prompts import build_prompt
from .validators import ResponseParser
from ..constants import AI_TEXT_LIMIT_CHARS
from ..exceptions import SchemaViolation, TransportError
from ..models import AIAuditLog

logger = logging.getLogger(__name__)


@dataclass
class ContentVerdict:
    is_valid: bool
    reason: str
    confidence: float = 0.0
    extracted_fields: dict = field(default_factory=dict)


class ContentVerificationEngine:

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = GeminiClient()
        return self._client

    def extract_document_info(self, text, document_type, document=None, expected_keywords=None,
                              identifier_format=''):
        prompt = build_prompt(
            text[:AI_TEXT_LIMIT_CHARS], document_type, expected_keywords, identifier_format,
        )
        logger.info("extract_document_info: sending %s (%d chars) to model", document_type, len(prompt))

        success, response, error, response_time = self.client.call(prompt)

        if not success:
            self._log(document, document_type, prompt, '', {}, False, error, response_time)
            logger.error("extract_document_info: transport failure for %s - %s", document_type, error)
            raise TransportError(f"AI extraction failed: {error}")

        try:
            parsed = ResponseParser.parse_verification(response)
        except SchemaViolation as e:
            self._log(document, document_type, prompt, response, {}, False, str(e), response_time)
            logger.warning("extract_document_info: schema violation for %s - %s", document_type, e)
            return ContentVerdict(is_valid=False, reason=str(e), confidence=0.0)

        self._log(document, document_type, prompt, response, parsed, True, '', response_time)

        verdict = ContentVerdict(
            is_valid=parsed['verification']['isValid'],
            reason=parsed['verification']['reason'].strip(),
            confidence=float(parsed['confidence']),
            extracted_fields=parsed['extractedFields'],
        )
        logger.info(
            "extract_document_info: %s valid=%s confidence=%.2f",
            document_type, verdict.is_valid, verdict.confidence,
        )
        return verdict

    def _log(self, document, document_type, prompt, raw, parsed, success, error, response_time):
        if document is None:
            return
        AIAuditLog.objects.create(
            document=document,
            document_type=document_type,
            prompt_sent=prompt,
            raw_response=raw or '',
            parsed_response=parsed or {},
            model_used=getattr(self.client, 'model_name', '') or '',
            success=success,
            error_message=error or '',
            response_time_ms=response_time or 0,
        )
