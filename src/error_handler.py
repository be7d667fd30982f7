"""Error handling helpers for the intake proxy."""
from typing import Any, Dict, Optional
import logging

from src.api.responses import ResponseEnvelope, message_response

logger = logging.getLogger(__name__)


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None, origin: Optional[str] = None) -> ResponseEnvelope:
        logger.error("Unhandled exception in intake proxy: %s (context=%s)", exc, context or {}, exc_info=True)
        return message_response(
            500,
            "An internal error occurred while processing your request. Please try again later.",
            origin,
        )
