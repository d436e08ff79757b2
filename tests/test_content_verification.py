import json
from datetime import date, timedelta
from unittest import mock

import pytest

from verification.exceptions import SchemaViolation, TransportError
from verification.models import AIAuditLog
from verification.services.content_verifier import ContentVerificationEngine
from verification.services.gemini_client import GeminiClient, classify_error
from verification.services.prompts import build_prompt
from verification.services.validators import DataValidator, ResponseParser


def fenced(payload):
    return "Here is the analysis:\n```json\n" + json.dumps(payload) + "\n```"


VALID_PAYLOAD = {
    "verification": {"isValid": True, "reason": "GSTIN certificate with valid registration"},
    "extractedFields": {"gstin": "33ABCDE1234F1Z5", "legalName": "Sri Lakshmi Textiles"},
    "confidence": 0.88,
}


class FakeClient:
    model_name = "models/test-model"

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def call(self, prompt, temperature=0.1):
        self.prompts.append(prompt)
        if self.error:
            return False, None, self.error, 40
        return True, self.reply, None, 40


class TestResponseParser:

    def test_valid_block(self):
        parsed = ResponseParser.parse_verification(fenced(VALID_PAYLOAD))
        assert parsed["confidence"] == 0.88
        assert parsed["extractedFields"]["gstin"] == "33ABCDE1234F1Z5"

    @pytest.mark.parametrize("text, message", [
        (json.dumps(VALID_PAYLOAD), "AI response format error: No JSON block found"),
        ("```json\n{not json}\n```", "Failed to parse AI response as JSON."),
        (fenced({**VALID_PAYLOAD, "verification": {"isValid": "yes", "reason": "x"}}),
         "AI response schema error: Invalid verification object"),
        (fenced({**VALID_PAYLOAD, "verification": {"isValid": True, "reason": "  "}}),
         "AI response schema error: Invalid verification object"),
        (fenced({k: v for k, v in VALID_PAYLOAD.items() if k != "extractedFields"}),
         "AI response schema error: Missing extractedFields"),
        (fenced({**VALID_PAYLOAD, "confidence": 1.5}), "AI response schema error: Invalid confidence value"),
        (fenced({**VALID_PAYLOAD, "confidence": True}), "AI response schema error: Invalid confidence value"),
    ])
    def test_schema_violations(self, text, message):
        with pytest.raises(SchemaViolation) as exc:
            ResponseParser.parse_verification(text)
        assert str(exc.value) == message


class TestDataValidator:

    def test_parses_common_formats(self):
        assert DataValidator.validate_date("31/12/2030", is_expiry=True) == (True, date(2030, 12, 31))
        assert DataValidator.validate_date("2019-04-01") == (True, date(2019, 4, 1))

    def test_future_issue_date_is_rejected(self):
        future = (date.today() + timedelta(days=30)).strftime("%d/%m/%Y")
        ok, message = DataValidator.validate_date(future)
        assert ok is False
        assert "in the future" in message

    def test_out_of_range_and_garbage(self):
        assert DataValidator.validate_date("01/01/1900")[0] is False
        assert DataValidator.validate_date("soon")[0] is False
        assert DataValidator.validate_date(None) == (True, None)

    def test_expiry_date_field_precedence(self):
        fields = {"expiryDate": "01/01/2031", "validUntil": "not a date", "validityPeriod": "2032-05-05"}
        assert DataValidator.expiry_date_from(fields) == date(2031, 1, 1)
        assert DataValidator.expiry_date_from({}) is None


class TestContentVerificationEngine:

    def test_valid_reply_becomes_verdict(self):
        verdict = ContentVerificationEngine(client=FakeClient(fenced(VALID_PAYLOAD))).extract_document_info(
            "GSTIN 33ABCDE1234F1Z5", "GSTIN Certificate",
        )

        assert verdict.is_valid is True
        assert verdict.reason == "GSTIN certificate with valid registration"
        assert verdict.confidence == 0.88
        assert verdict.extracted_fields["legalName"] == "Sri Lakshmi Textiles"

    def test_missing_fence_is_invalid_with_zero_confidence(self):
        verdict = ContentVerificationEngine(client=FakeClient("The document looks fine.")).extract_document_info(
            "text", "Fire NOC",
        )

        assert verdict.is_valid is False
        assert verdict.confidence == 0.0
        assert verdict.reason == "AI response format error: No JSON block found"

    def test_transport_failure_raises(self):
        engine = ContentVerificationEngine(client=FakeClient(error="API quota exceeded"))

        with pytest.raises(TransportError, match="API quota exceeded"):
            engine.extract_document_info("text", "Fire NOC")

    def test_prompt_includes_expected_markers_and_truncated_text(self):
        client = FakeClient(fenced(VALID_PAYLOAD))
        ContentVerificationEngine(client=client).extract_document_info(
            "x" * 40000, "GSTIN Certificate", expected_keywords=["GOODS AND SERVICES TAX"],
        )

        prompt = client.prompts[0]
        assert "GOODS AND SERVICES TAX" in prompt
        assert "x" * 30001 not in prompt

    @pytest.mark.django_db
    def test_audit_log_written_for_each_call(self, make_document):
        document = make_document()
        engine = ContentVerificationEngine(client=FakeClient("no json here"))

        engine.extract_document_info("text", "GSTIN Certificate", document=document)

        log = AIAuditLog.objects.get(document=document)
        assert log.success is False
        assert log.model_used == "models/test-model"
        assert log.error_message == "AI response format error: No JSON block found"
        assert log.raw_response == "no json here"


def test_build_prompt_uses_type_specific_requirements():
    prompt = build_prompt("sample", "EPF Registration")
    generic = build_prompt("sample", "Canteen Menu")

    assert "EPF Registration" in prompt
    assert "```json" in prompt
    assert "REQUIREMENTS:" in prompt
    assert "REQUIREMENTS:" not in generic


def test_build_prompt_resolves_catalog_aliases():
    prompt = build_prompt("sample", "ISO 9001 Certificate")

    assert "REQUIREMENTS:" in prompt
    assert "certificateNumber" in prompt
    assert "registrationNumber" not in prompt


def test_build_prompt_includes_identifier_format():
    prompt = build_prompt("sample", "GSTIN Certificate", identifier_format=r"^\d{2}[A-Z]{5}$")

    assert r"^\d{2}[A-Z]{5}$" in prompt
    assert "pattern" not in build_prompt("sample", "GSTIN Certificate")


@pytest.mark.parametrize("message, expected", [
    ("429 Resource exhausted: Quota exceeded for model", "API quota exceeded"),
    ("400 API key not valid. Please pass a valid API key.", "Invalid API key"),
    ("504 Deadline Exceeded", "Network error talking to AI service"),
    ("something unusual", "something unusual"),
])
def test_gemini_errors_are_classified(message, expected):
    assert classify_error(message) == expected


class TestGeminiClient:

    def test_requires_api_key(self, settings):
        settings.GEMINI_API_KEY = ""
        with pytest.raises(ValueError):
            GeminiClient()

    def test_call_reports_sdk_failures_without_raising(self, settings):
        settings.GEMINI_API_KEY = "test-key"
        with mock.patch("verification.services.gemini_client.genai") as genai:
            genai.GenerativeModel.return_value.generate_content.side_effect = RuntimeError("Quota exceeded")
            client = GeminiClient(model_name="models/test-model", timeout=5)

            success, text, error, _ = client.call("prompt")

        assert (success, text, error) == (False, None, "API quota exceeded")

    def test_blank_reply_is_a_failure(self, settings):
        settings.GEMINI_API_KEY = "test-key"
        with mock.patch("verification.services.gemini_client.genai") as genai:
            genai.GenerativeModel.return_value.generate_content.return_value = mock.Mock(text="  ")
            success, _, error, _ = GeminiClient().call("prompt")

        assert success is False
        assert error == "Empty response from API"
