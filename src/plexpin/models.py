"""Canonical Pydantic models shared across all plexpin modules.

The models fall into two groups:

**Configuration models** -- resolved by :mod:`plexpin.config` from CLI
flags, environment variables, and the JSON config file:
    :class:`ClientMetadata`, :class:`PollConfig`, and :class:`Settings`.

**Wire models** -- parsed from plex.tv XML responses by
:mod:`plexpin.parser`:
    :class:`Pin`.

All models use Pydantic v2. The client identity itself is a plain ``str``
(the local server's ``machineIdentifier``) and has no model of its own.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Client metadata ---


class ClientMetadata(BaseModel):
    """Product and device fields sent with every plex.tv request.

    plex.tv identifies the requesting application by these fields, both as
    ``X-Plex-*`` headers and as ``context[device][...]`` query parameters
    on the authorization URL. :mod:`plexpin.headers` maps each attribute to
    its header and query names.

    ``device_name`` is the application name and ``version`` the application
    description; both are shown to the user on the approval page and should
    be non-empty.
    """

    model_config = ConfigDict(frozen=True)

    product: str = "Plex OAuth"
    version: str = ""
    platform: str = "Plex"
    platform_version: str = "1.0"
    device: str = "plexpin"
    device_name: str = ""
    model: str = "X-Plex-Model"
    screen_resolution: str = "640x480"
    layout: str = "desktop"
    language: str = "en"


# --- Polling ---


class PollConfig(BaseModel):
    """Timing bounds for :class:`~plexpin.poller.TokenPoller`.

    The poller never runs longer than ``timeout`` seconds and, when
    ``max_attempts`` is set, never issues more than that many requests.
    """

    interval: float = Field(default=1.0, gt=0, description="Seconds between poll requests")
    timeout: float = Field(
        default=1800.0, gt=0, description="Seconds before polling gives up"
    )
    max_attempts: Optional[int] = Field(
        default=None, ge=1, description="Upper bound on poll requests"
    )


# --- Settings ---


class Settings(BaseModel):
    """Effective configuration for one run of the PIN flow.

    Built by :func:`plexpin.config.resolve_settings` and passed explicitly
    into :func:`plexpin.flow.run_pin_flow`, so nothing below the CLI reads
    the process environment.
    """

    identity_url: str = "http://localhost:32400/identity"
    plex_url: str = "https://plex.tv"
    auth_app_url: str = "https://app.plex.tv/auth/"
    client_id: Optional[str] = Field(
        default=None,
        description="Explicit client identifier; skips the identity lookup when set",
    )
    forward_url: Optional[str] = Field(
        default=None, description="Where the auth app redirects after approval"
    )
    request_timeout: float = Field(default=30.0, gt=0)
    verify_ssl: bool = True
    metadata: ClientMetadata = Field(default_factory=ClientMetadata)
    poll: PollConfig = Field(default_factory=PollConfig)


# --- Wire models ---


class Pin(BaseModel):
    """A pairing PIN issued by plex.tv.

    ``id`` is the poll key and ``code`` the short string the user sees in
    the authorization URL; neither changes after creation. ``auth_token``
    stays empty until the user approves the PIN. Instances are frozen: each
    poll yields a fresh ``Pin`` rather than mutating the original.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    code: str
    auth_token: str = ""
    expires_in: Optional[int] = None
    client_identifier: Optional[str] = None

    @property
    def granted(self) -> bool:
        """Whether plex.tv has issued a token for this PIN."""
        return bool(self.auth_token)
