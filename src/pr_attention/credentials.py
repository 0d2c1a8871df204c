"""Credential lookup for the acting GitHub identity.

The sync engine never reads tokens from settings directly; it asks a
CredentialResolver. The settings-backed resolver covers single-token and
multi-login deployments.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from pr_attention.config import Settings, get_settings


@dataclass(frozen=True)
class Identity:
    """A login (possibly not yet known) and a usable access token."""

    token: str
    login: str | None = None

    def __repr__(self) -> str:
        return f"Identity(login={self.login!r}, token='***')"


class CredentialResolver(Protocol):
    """Source of stored identities."""

    async def list_identities(self, login: str | None = None) -> list[Identity]:
        """Return stored identities, optionally restricted to one login.

        Implementations refresh stale tokens before returning them.
        """
        ...


class SettingsCredentialResolver:
    """Resolve identities from GITHUB_TOKENS (login -> token) and GITHUB_TOKEN."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    async def list_identities(self, login: str | None = None) -> list[Identity]:
        identities = [
            Identity(token=token, login=name)
            for name, token in self._settings.github_tokens.items()
            if token
        ]

        known = {i.login.lower() for i in identities if i.login}
        default_login = self._settings.github_login
        if self._settings.github_token and (
            default_login is None or default_login.lower() not in known
        ):
            identities.append(Identity(token=self._settings.github_token, login=default_login))

        if login is not None:
            wanted = login.lower()
            # A token whose login is not configured may still belong to the
            # requested user; the orchestrator confirms against GET /user.
            matching = [i for i in identities if i.login and i.login.lower() == wanted]
            if not matching:
                matching = [i for i in identities if i.login is None]
            identities = matching

        return sorted(identities, key=lambda i: (i.login or "").lower())
