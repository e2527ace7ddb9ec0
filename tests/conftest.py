"""Shared test fixtures for plexpin.

Provides canned plex.tv XML bodies, a ready-made :class:`Settings`, an
isolated environment (no ``APP_*``/``PLEXPIN_*`` variables, XDG dirs under
``tmp_path``), and a fake plex.tv served through ``httpx.MockTransport``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import httpx
import pytest

from plexpin.models import ClientMetadata, PollConfig, Settings
from plexpin.output import reset_output


_IDENTITY_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<MediaContainer size="0" claimed="1" machineIdentifier="abc123" version="1.40.0"/>\n'
)


def _pin_xml(
    pin_id: str = "1",
    code: str = "XYZ9",
    auth_token: str = "",
    expires_in: int | None = 1800,
) -> str:
    """Build a plex.tv ``<pin>`` response body."""
    attrs = f'id="{pin_id}" code="{code}" product="Plex OAuth" trusted="0"'
    attrs += ' clientIdentifier="abc123"'
    if expires_in is not None:
        attrs += f' expiresIn="{expires_in}"'
    attrs += f' authToken="{auth_token}"'
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<pin {attrs}/>\n'


_ERRORS_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    "<errors>\n"
    '  <error code="1020" message="Code not found or expired" status="404"/>\n'
    "</errors>\n"
)


@pytest.fixture
def identity_xml() -> str:
    return _IDENTITY_XML


@pytest.fixture
def errors_xml() -> str:
    return _ERRORS_XML


@pytest.fixture
def pin_xml() -> Callable[..., str]:
    """Builder for ``<pin>`` bodies; see :func:`_pin_xml` for the arguments."""
    return _pin_xml


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Settings and environment
# ---------------------------------------------------------------------------


@pytest.fixture
def metadata() -> ClientMetadata:
    return ClientMetadata(device_name="Test App", version="1.2.3")


@pytest.fixture
def settings(metadata: ClientMetadata) -> Settings:
    """Settings pointing at fake hosts, with a fast poll interval."""
    return Settings(
        identity_url="http://media.test:32400/identity",
        plex_url="https://plex.test",
        metadata=metadata,
        poll=PollConfig(interval=0.001, timeout=5.0),
    )


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Clear plexpin env vars and point XDG dirs at *tmp_path*.

    Returns:
        The directory that holds ``config.json``.
    """
    for var in (
        "APP_NAME",
        "APP_DESCRIPTION",
        "PLEXPIN_IDENTITY_URL",
        "PLEXPIN_PLEX_URL",
        "PLEXPIN_CLIENT_ID",
        "PLEXPIN_POLL_INTERVAL",
        "PLEXPIN_POLL_TIMEOUT",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("plexpin.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    return tmp_path / "config" / "plexpin"


# ---------------------------------------------------------------------------
# Fake Plex endpoints
# ---------------------------------------------------------------------------


class FakePlex:
    """``httpx.MockTransport`` handler serving identity and PIN endpoints.

    The PIN is granted on poll number ``grant_on_tick`` (never when ``None``).
    The first ``missing_polls`` polls answer 404 as if plex.tv had lost the PIN.
    """

    def __init__(
        self,
        token: str = "tok-1",
        grant_on_tick: int | None = 3,
        identity_body: str = _IDENTITY_XML,
        pin_body: str | None = None,
        missing_polls: int = 0,
    ) -> None:
        self.token = token
        self.grant_on_tick = grant_on_tick
        self.identity_body = identity_body
        self.pin_body = pin_body if pin_body is not None else _pin_xml()
        self.missing_polls = missing_polls
        self.requests: list[httpx.Request] = []
        self.polls = 0

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/identity":
            return self._xml(self.identity_body)
        if request.method == "POST" and path == "/api/v2/pins":
            return self._xml(self.pin_body, status_code=201)
        if request.method == "GET" and path.startswith("/api/v2/pins/"):
            self.polls += 1
            if self.polls <= self.missing_polls:
                return self._xml(_ERRORS_XML, status_code=404)
            granted = self.grant_on_tick is not None and self.polls >= self.grant_on_tick
            pin_id = path.rsplit("/", 1)[-1]
            return self._xml(_pin_xml(pin_id=pin_id, auth_token=self.token if granted else ""))
        return httpx.Response(404)

    @staticmethod
    def _xml(body: str, status_code: int = 200) -> httpx.Response:
        return httpx.Response(
            status_code,
            content=body.encode("utf-8"),
            headers={"content-type": "application/xml"},
        )


@pytest.fixture
def make_fake_plex() -> Callable[..., FakePlex]:
    """Factory for :class:`FakePlex` servers with custom behaviour."""
    return FakePlex


@pytest.fixture
def fake_plex() -> FakePlex:
    """A fake plex.tv that grants ``tok-1`` on the third poll."""
    return FakePlex()
