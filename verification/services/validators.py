import json
import re
import logging
from datetime import datetime, date

from ..exceptions import SchemaViolation

logger = logging.getLogger(__name__)

JSON_FENCE = re.compile(r'```json\s*([\s\S]*?)\s*```')


class ResponseParser:

    @staticmethod
    def parse_verification(text):
        """
        Pull the fenced ```json block out of an AI reply and check it against
        the verification schema. Returns the decoded object or raises
        SchemaViolation naming the first check that failed.
        """
        match = JSON_FENCE.search(text or '')
        if not match:
            logger.error("parse_verification: no ```json block in response")
            raise SchemaViolation("AI response format error: No JSON block found")

        try:
            parsed = json.loads(match.group(1))
        except json.JSONDecodeError:
            logger.error("parse_verification: invalid JSON. preview: %s", match.group(1)[:300])
            raise SchemaViolation("Failed to parse AI response as JSON.")

        if not isinstance(parsed, dict):
            raise SchemaViolation("Failed to parse AI response as JSON.")

        verification = parsed.get('verification')
        if (
            not isinstance(verification, dict)
            or not isinstance(verification.get('isValid'), bool)
            or not isinstance(verification.get('reason'), str)
            or not verification['reason'].strip()
        ):
            logger.error("parse_verification: invalid verification object %s", verification)
            raise SchemaViolation("AI response schema error: Invalid verification object")

        if not isinstance(parsed.get('extractedFields'), dict):
            logger.error("parse_verification: extractedFields missing")
            raise SchemaViolation("AI response schema error: Missing extractedFields")

        confidence = parsed.get('confidence')
        if (
            isinstance(confidence, bool)
            or not isinstance(confidence, (int, float))
            or not 0 <= confidence <= 1
        ):
            logger.error("parse_verification: invalid confidence %r", confidence)
            raise SchemaViolation("AI response schema error: Invalid confidence value")

        return parsed


class DataValidator:

    DATE_FORMATS = ('%Y-%m-%d', '%d/%m/%Y', '%d-%m-%Y', '%d.%m.%Y', '%Y/%m/%d', '%d %B %Y', '%d %b %Y', '%B %d, %Y')

    @staticmethod
    def validate_date(date_str, is_expiry=False):
        if not date_str:
            return True, None

        date_str = str(date_str).strip()

        parsed = None
        for fmt in DataValidator.DATE_FORMATS:
            try:
                parsed = datetime.strptime(date_str, fmt).date()
                break
            except ValueError:
                continue

        if parsed is None:
            logger.warning("validate_date: cannot parse '%s'", date_str)
            return False, f"Cannot parse date: {date_str}"

        if parsed < date(1950, 1, 1):
            logger.warning("validate_date: '%s' is before 1950", date_str)
            return False, f"Date {date_str} too far in the past"

        if parsed > date(2100, 12, 31):
            logger.warning("validate_date: '%s' is after 2100", date_str)
            return False, f"Date {date_str} unrealistically far in the future"

        if not is_expiry and parsed > date.today():
            logger.warning("validate_date: issue date '%s' is in the future", date_str)
            return False, f"Issue date {date_str} is in the future"

        return True, parsed

    @staticmethod
    def expiry_date_from(fields):
        """First parseable expiry-style field in the AI-extracted data."""
        for key in ('validUntil', 'expiryDate', 'validityPeriod'):
            ok, parsed = DataValidator.validate_date((fields or {}).get(key), is_expiry=True)
            if ok and parsed:
                return parsed
        return None
