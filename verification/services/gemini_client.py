import google.generativeai as genai
from django.conf import settings
import time
import logging

logger = logging.getLogger(__name__)

# substring in the SDK error -> message recorded on the audit log
ERROR_CATEGORIES = (
    (('quota', 'resource exhausted'), "API quota exceeded"),
    (('api key', 'permission denied', 'unauthenticated'), "Invalid API key"),
    (('rate limit',), "Rate limit exceeded"),
    (('deadline', 'timed out', 'timeout', 'unavailable', 'connection'), "Network error talking to AI service"),
)


def classify_error(message):
    lowered = message.lower()
    for markers, label in ERROR_CATEGORIES:
        if any(marker in lowered for marker in markers):
            return label
    return message


class GeminiClient:
    def __init__(self, model_name=None, timeout=None):
        if not settings.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY not configured in settings")

        genai.configure(api_key=settings.GEMINI_API_KEY)
        self.model_name = model_name or settings.GEMINI_MODEL
        self.timeout = timeout or settings.GEMINI_TIMEOUT
        self.model = genai.GenerativeModel(self.model_name)

    def call(self, prompt, temperature=0.1):
        """Returns (success, text, error, response_time_ms). Never raises."""
        started = time.monotonic()
        try:
            response = self.model.generate_content(
                prompt,
                generation_config={'temperature': temperature},
                request_options={'timeout': self.timeout},
            )
            text = getattr(response, 'text', None)
        except Exception as e:
            elapsed = int((time.monotonic() - started) * 1000)
            logger.error("call: Gemini API error after %sms - %s", elapsed, e)
            return False, None, classify_error(str(e)), elapsed

        elapsed = int((time.monotonic() - started) * 1000)
        if not text or not text.strip():
            logger.error("call: Gemini returned empty response")
            return False, None, "Empty response from API", elapsed

        logger.debug("call: %s answered in %sms", self.model_name, elapsed)
        return True, text, None, elapsed
