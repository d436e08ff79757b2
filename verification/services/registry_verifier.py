import logging

from .registry_client import RegistryGateway, RegistryResult
from .retry import call_with_retry
from .strategies import get_strategy

logger = logging.getLogger(__name__)

NO_REGISTRY_CHECK = "No external API verification required for this document type."


class RegistryVerificationService:

    def __init__(self, gateway=None, max_attempts=None, base_delay=None):
        self.gateway = gateway or RegistryGateway()
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    def verify(self, document):
        document_type = document.compliance_document.name
        strategy = get_strategy(document_type)

        if not strategy.registry_check:
            logger.info("verify: no registry check for %s, passing", document_type)
            return RegistryResult(is_valid=True, status='VERIFIED', details=NO_REGISTRY_CHECK)

        identifier = self.identifier_for(strategy, document.extracted_data)
        operation = getattr(self.gateway, strategy.registry_check)

        logger.info(
            "verify: %s via %s identifier=%s",
            document.id, strategy.registry_check, identifier,
        )
        return call_with_retry(
            operation, identifier,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
        )

    @staticmethod
    def identifier_for(strategy, extracted_data):
        data = extracted_data or {}
        for field_name in strategy.identifier_fields:
            value = data.get(field_name)
            if isinstance(value, str) and value.strip():
                return value.strip()
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return str(value)
        return None
