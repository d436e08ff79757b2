import logging
import time
from dataclasses import dataclass, asdict
from typing import Optional

import requests
from django.conf import settings

from .registry_cache import RegistryCache
from ..exceptions import TransportError, ValidationError

logger = logging.getLogger(__name__)

VALID_REGISTRY_STATUSES = {'VERIFIED', 'VALID', 'ACTIVE'}


@dataclass
class RegistryResult:
    is_valid: bool
    status: str
    details: str = ''
    transaction_id: Optional[str] = None

    def as_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        return cls(
            is_valid=bool(data.get('is_valid')),
            status=data.get('status') or '',
            details=data.get('details') or '',
            transaction_id=data.get('transaction_id'),
        )


# api name -> (identifier label, registry display name, transaction id prefix)
REGISTRY_APIS = {
    'gstin':           ('GSTIN', 'GSTIN', 'gstin'),
    'cin':             ('CIN', 'CIN', 'cin'),
    'factory_license': ('Factory License Number', 'Factory License', 'factory-license'),
    'esic':            ('ESIC Code', 'ESIC', 'esic'),
    'epf':             ('EPF Code', 'EPF', 'epf'),
    'trrn':            ('TRRN', 'TRRN', 'trrn'),
    'tnpcb':           ('TNPCB Order Number', 'TNPCB', 'tnpcb'),
    'fire_noc':        ('Fire NOC Number', 'Fire NOC', 'fire-noc'),
    'iso':             ('ISO Certificate Number', 'ISO', 'iso'),
    'oeko_tex':        ('OEKO-TEX Certificate Number', 'OEKO-TEX', 'oeko-tex'),
    'gots':            ('GOTS License Number', 'GOTS', 'gots'),
}


class RegistryGateway:

    def __init__(self, cache=None, session=None, stub_mode=None, timeout=None, endpoints=None):
        self.cache = cache or RegistryCache()
        self.session = session or requests.Session()
        self.stub_mode = settings.REGISTRY_STUB_MODE if stub_mode is None else stub_mode
        self.timeout = timeout or settings.REGISTRY_TIMEOUT
        self.endpoints = endpoints or settings.REGISTRY_ENDPOINTS

    def verify_gstin(self, gstin):
        return self._verify('gstin', gstin)

    def verify_cin(self, cin):
        return self._verify('cin', cin)

    def verify_factory_license(self, license_number):
        return self._verify('factory_license', license_number)

    def verify_epf(self, epf_code):
        return self._verify('epf', epf_code)

    def verify_esic(self, esic_code):
        return self._verify('esic', esic_code)

    def verify_trrn(self, trrn):
        return self._verify('trrn', trrn)

    def verify_tnpcb(self, order_number):
        return self._verify('tnpcb', order_number)

    def verify_fire_noc(self, noc_number):
        return self._verify('fire_noc', noc_number)

    def verify_iso(self, certificate_number):
        return self._verify('iso', certificate_number)

    def verify_oeko_tex(self, certificate_number):
        return self._verify('oeko_tex', certificate_number)

    def verify_gots(self, license_number):
        return self._verify('gots', license_number)

    def _verify(self, api_name, identifier):
        label, display, prefix = REGISTRY_APIS[api_name]
        identifier = str(identifier).strip() if identifier is not None else ''
        if not identifier:
            raise ValidationError(f"{label} is required")

        cached = self.cache.get(api_name, identifier)
        if cached is not None:
            logger.info("_verify: cache hit for %s %s", api_name, identifier)
            return RegistryResult.from_dict(cached)

        self.cache.increment_usage(api_name)

        if self.stub_mode:
            logger.info("_verify: stubbed %s verification for %s", api_name, identifier)
            result = RegistryResult(
                is_valid=True,
                status='VERIFIED',
                details=f"{display} verification completed successfully (mocked)",
                transaction_id=f"{prefix}-mock-{int(time.time() * 1000)}",
            )
        else:
            result = self._fetch(api_name, identifier)
            if result is None:
                return RegistryResult(
                    is_valid=False,
                    status='REJECTED',
                    details=f"{label} {identifier} not found in registry",
                )

        self.cache.set(api_name, identifier, result.as_dict())
        return result

    def _fetch(self, api_name, identifier):
        url = f"{self.endpoints[api_name].rstrip('/')}/{identifier}"
        headers = {'Accept': 'application/json'}
        api_key = getattr(settings, 'REGISTRY_API_KEYS', {}).get(api_name)
        if api_key:
            headers['Authorization'] = f"Bearer {api_key}"

        logger.info("_fetch: GET %s", url)
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.Timeout as e:
            logger.warning("_fetch: timeout after %ss for %s", self.timeout, url)
            raise TransportError(f"{api_name} registry timed out") from e
        except requests.RequestException as e:
            logger.warning("_fetch: request failed for %s - %s", url, e)
            raise TransportError(f"{api_name} registry request failed: {e}") from e

        if response.status_code == 404:
            logger.info("_fetch: %s %s not found", api_name, identifier)
            return None

        try:
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as e:
            raise TransportError(f"{api_name} registry returned HTTP {response.status_code}") from e
        except ValueError as e:
            raise TransportError(f"{api_name} registry returned a non-JSON body") from e

        if not isinstance(data, dict):
            raise TransportError(f"{api_name} registry returned an unexpected payload")

        status = str(data.get('status') or '').upper()
        is_valid = data.get('isValid')
        if not isinstance(is_valid, bool):
            is_valid = status in VALID_REGISTRY_STATUSES

        return RegistryResult(
            is_valid=is_valid,
            status='VERIFIED' if is_valid else 'REJECTED',
            details=data.get('details') or data.get('message') or f"{api_name} registry status: {status or 'unknown'}",
            transaction_id=data.get('transactionId') or data.get('referenceId'),
        )
