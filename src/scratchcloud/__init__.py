"""
scratchcloud: read and write Scratch / TurboWarp cloud variables.
"""

from scratchcloud.config import (
    SCRATCH_ENDPOINT,
    TURBOWARP_ENDPOINT,
    CloudEndpoint,
    endpoint_for,
)
from scratchcloud.session import (
    Credential,
    ReconnectPolicy,
    Session,
    SessionEvent,
)
from scratchcloud.validation import CLOUD_PREFIX

__all__ = [
    "CLOUD_PREFIX",
    "CloudEndpoint",
    "Credential",
    "ReconnectPolicy",
    "SCRATCH_ENDPOINT",
    "Session",
    "SessionEvent",
    "TURBOWARP_ENDPOINT",
    "endpoint_for",
]
