class VerificationError(Exception):
    """Base class for every failure raised inside the verification pipeline."""


class ExtractionError(VerificationError):
    """File unreachable, unsupported type, or OCR produced no text."""


class SchemaViolation(VerificationError):
    """AI reply did not match the verification schema."""


class ValidationError(VerificationError):
    """Bad input to a gateway call, such as an empty identifier. Never retried."""


class TransportError(VerificationError):
    """Network, timeout, quota or auth failure talking to an external service."""
