import logging
import time

from django.conf import settings
from tenacity import (
    Retrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from ..exceptions import TransportError

logger = logging.getLogger(__name__)


def call_with_retry(fn, *args, max_attempts=None, base_delay=None, sleep=time.sleep, **kwargs):
    """
    Call fn(*args, **kwargs), retrying only TransportError.

    Waits base_delay * 2^(attempt-1) seconds between attempts and re-raises
    the last error once max_attempts is exhausted. ValidationError and any
    other exception propagate on the first attempt.
    """
    if max_attempts is None:
        max_attempts = settings.REGISTRY_MAX_RETRIES
    if base_delay is None:
        base_delay = settings.REGISTRY_RETRY_BASE_DELAY

    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, exp_base=2, min=0),
        retry=retry_if_exception_type(TransportError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
    return retrying(fn, *args, **kwargs)
