"""
Configuration for scratchcloud.

Two pieces live here:
- ``CloudEndpoint`` describes a cloud backend (URL, how the credential is
  presented, how long a value may be). ``SCRATCH_ENDPOINT`` and
  ``TURBOWARP_ENDPOINT`` are the two known backends.
- ``Config`` / ``CONFIG`` hold process-level settings read from the
  environment (and a ``.env`` file if present).
"""

import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()

CredentialStrategy = Literal["cookie", "origin"]


class CloudEndpoint(BaseModel):
    """A cloud variable backend."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    origin: str
    # "cookie": send the session id as a cookie; "origin": trust the Origin header only
    credential_strategy: CredentialStrategy = "cookie"
    max_value_length: int = Field(default=256, gt=0)


SCRATCH_ENDPOINT = CloudEndpoint(
    name="scratch",
    url="wss://clouddata.scratch.mit.edu/",
    origin="https://scratch.mit.edu",
    credential_strategy="cookie",
    max_value_length=256,
)

TURBOWARP_ENDPOINT = CloudEndpoint(
    name="turbowarp",
    url="wss://clouddata.turbowarp.org/",
    origin="turbowarp.org",
    credential_strategy="origin",
    max_value_length=100_000,
)


def endpoint_for(turbowarp: bool = False) -> CloudEndpoint:
    """Pick the endpoint selected by the ``turbowarp`` flag."""
    return TURBOWARP_ENDPOINT if turbowarp else SCRATCH_ENDPOINT


def _env_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config(BaseModel):
    """Process-level settings, mostly used as CLI defaults."""

    username: str | None = None
    session_id: str | None = None
    turbowarp: bool = False
    log_level: str = "INFO"
    open_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            username=os.getenv("SCRATCHCLOUD_USERNAME") or None,
            session_id=os.getenv("SCRATCHCLOUD_SESSION_ID") or None,
            turbowarp=_env_bool("SCRATCHCLOUD_TURBOWARP"),
            log_level=os.getenv("SCRATCHCLOUD_LOG_LEVEL", "INFO"),
            open_timeout=float(os.getenv("SCRATCHCLOUD_OPEN_TIMEOUT", "10")),
        )


CONFIG = Config.from_env()
