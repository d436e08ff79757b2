import logging
from datetime import date

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)

USAGE_TTL = 2 * 24 * 60 * 60


class RegistryCache:
    """Successful registry responses keyed by (api_name, identifier), plus daily call counters."""

    def __init__(self, backend=None, ttl=None):
        self.backend = backend or caches[settings.REGISTRY_CACHE_ALIAS]
        self.ttl = settings.REGISTRY_CACHE_TTL if ttl is None else ttl

    @staticmethod
    def make_key(api_name, identifier):
        return f"registry:{api_name}:{str(identifier).strip().upper()}"

    @staticmethod
    def usage_key(api_name, day=None):
        return f"registry-usage:{api_name}:{(day or date.today()).isoformat()}"

    def get(self, api_name, identifier):
        value = self.backend.get(self.make_key(api_name, identifier))
        if value is not None:
            logger.debug("get: cache hit for %s/%s", api_name, identifier)
        return value

    def set(self, api_name, identifier, value, ttl=None):
        self.backend.set(self.make_key(api_name, identifier), value, self.ttl if ttl is None else ttl)

    def increment_usage(self, api_name):
        key = self.usage_key(api_name)
        # add() is a no-op when the counter already exists
        self.backend.add(key, 0, USAGE_TTL)
        try:
            return self.backend.incr(key)
        except ValueError:
            self.backend.set(key, 1, USAGE_TTL)
            return 1

    def get_usage(self, api_name, day=None):
        return self.backend.get(self.usage_key(api_name, day), 0)
