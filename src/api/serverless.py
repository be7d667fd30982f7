# serverless.py
# Serverless handler wrapping the intake FastAPI app

import logging

from mangum import Mangum

from src.api.main import app
from src.api.responses import cors_headers, message_response

logger = logging.getLogger(__name__)

# Wrap FastAPI app with Mangum for Lambda-style runtimes
asgi_handler = Mangum(app, lifespan="off")


def handler(event, context):
    """
    Serverless entry point for the intake proxy
    Handles /inspection, /verify and /tenants/* routes
    """
    try:
        return asgi_handler(event, context)
    except Exception as e:
        logger.exception("Serverless handler failed: %s", e)
        headers = (event or {}).get("headers") or {}
        origin = headers.get("origin") or headers.get("Origin")
        envelope = message_response(500, "An internal error occurred while processing your request.", origin)
        return {
            "statusCode": envelope.status,
            "body": envelope.body,
            "headers": cors_headers(origin),
        }
