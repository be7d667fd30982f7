"""
Gateway package: origin checks, rejections and the request validation
pipeline that runs in front of every forwarded intake request.
"""

from .errors import Rejection, UpstreamUnavailableError
from .origin_guard import OriginGuard, normalize_origin
from .pipeline import FLOW_INSPECTION, FLOW_VERIFY, IntakePipeline, IntakeRequest, select_upstream_url

__all__ = [
    "Rejection", "UpstreamUnavailableError",
    "OriginGuard", "normalize_origin",
    "FLOW_INSPECTION", "FLOW_VERIFY", "IntakePipeline", "IntakeRequest", "select_upstream_url",
]
