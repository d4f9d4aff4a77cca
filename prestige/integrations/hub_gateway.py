"""Hub integration gateway.

The Hub is the organization's identity and office service. It answers
role questions ("does the caller hold prestige_award_national over member
42?") and resolves the bearer token to a member ID.

One HubGateway is built per request and bound to the caller's token.
All outbound HTTP calls go through ``_call``, which never raises; the
public methods translate its result into PermissionAuthority answers:

  200  → allowed, body lists the granting offices (bare or under "offices")
  403  → denied (only for verify calls)
  else → DependencyError("hub", ...)

There are no retries. A Hub failure surfaces to the caller as a 502.

Wire contract:
  GET {base}/v1/user                                → {"id": <int>, ...}
  GET {base}/v1/office/verify/user/<id>?roles=a,b   → {"offices": [...]} | [...] | 403
  GET {base}/v1/office/verify/org/<id>?roles=a,b    → {"offices": [...]} | [...] | 403
  GET {base}/v1/user/offices?roles=a,b              → [office, ...]
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Any

import requests

from prestige.core.exceptions import AuthenticationError, DependencyError
from prestige.services.permission import PermissionAuthority, PermissionGrant
from prestige.utils.helpers import parse_int

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10  # seconds


class HubResult:
    """Typed result of one Hub HTTP call.

    Always check .ok before accessing .data.
    Never raises: transport errors are captured in .error.
    """

    __slots__ = ("ok", "status_code", "data", "error", "duration_ms")

    def __init__(
        self,
        *,
        ok: bool,
        status_code: int | None,
        data: Any,
        error: str | None,
        duration_ms: int,
    ) -> None:
        self.ok = ok
        self.status_code = status_code
        self.data = data
        self.error = error
        self.duration_ms = duration_ms

    def to_log_dict(self) -> dict:
        """Structured representation for logging. Never includes the token."""
        return {
            "ok": self.ok,
            "status_code": self.status_code,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


class HubGateway(PermissionAuthority):
    """PermissionAuthority backed by the Hub HTTP API, bound to one caller.

    Usage:
        hub = HubGateway(app.config["HUB_URL"], token)
        grant = hub.has_over_user(42, ["prestige_award_national"])
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        session: requests.Session | None = None,
        timeout: int = _DEFAULT_TIMEOUT,
    ) -> None:
        if not base_url:
            raise DependencyError("hub", "HUB_URL is not configured")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self._token = token
        self._user_id: int | None = None

    # ── Internal HTTP dispatch ───────────────────────────────────────────

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
        }

    def _call(self, path: str, *, params: dict | None = None) -> HubResult:
        """Execute an authenticated GET against the Hub.

        Returns:
            HubResult: always returns, never raises.
        """
        url = f"{self.base_url}{path}"
        kwargs: dict[str, Any] = {"headers": self._headers(), "timeout": self.timeout}
        if params:
            kwargs["params"] = params

        t0 = time.perf_counter()
        try:
            resp = self.session.request("GET", url, **kwargs)
        except requests.Timeout:
            logger.warning("Hub request timed out url=%s timeout=%ss", url, self.timeout)
            return HubResult(
                ok=False, status_code=None, data=None,
                error=f"Request timed out after {self.timeout}s", duration_ms=0,
            )
        except requests.RequestException as exc:
            logger.warning("Hub network error url=%s error=%s", url, str(exc)[:200])
            return HubResult(ok=False, status_code=None, data=None, error=str(exc)[:500], duration_ms=0)

        duration_ms = int((time.perf_counter() - t0) * 1000)
        try:
            data = resp.json() if resp.content else None
        except ValueError:
            data = None

        result = HubResult(
            ok=resp.ok,
            status_code=resp.status_code,
            data=data,
            error=None if resp.ok else f"HTTP {resp.status_code}: {resp.text[:500]}",
            duration_ms=duration_ms,
        )
        logger.debug("Hub GET %s", path, extra=result.to_log_dict())
        return result

    @staticmethod
    def _roles_param(roles: Sequence[str]) -> dict:
        return {"roles": ",".join(roles)}

    @staticmethod
    def _offices(data) -> tuple[dict, ...]:
        if isinstance(data, dict):
            data = data.get("offices")
        if isinstance(data, list):
            return tuple(o for o in data if isinstance(o, dict))
        return ()

    def _verify(self, path: str, roles: Sequence[str]) -> PermissionGrant:
        result = self._call(path, params=self._roles_param(roles))
        if result.ok:
            return PermissionGrant(allowed=True, offices=self._offices(result.data))
        if result.status_code == 403:
            logger.info("Hub denied %s roles=%s", path, ",".join(roles))
            return PermissionGrant(allowed=False)
        raise DependencyError("hub", result.error or "unexpected response")

    # ── PermissionAuthority ──────────────────────────────────────────────

    def current_user_id(self) -> int:
        """Resolve the token to a member ID (cached for the gateway's lifetime).

        Raises:
            AuthenticationError: Hub rejected the token (401/403).
            DependencyError: Hub unreachable or returned a malformed body.
        """
        if self._user_id is not None:
            return self._user_id

        result = self._call("/v1/user")
        if result.status_code in (401, 403):
            raise AuthenticationError("Hub rejected the bearer token")
        if not result.ok:
            raise DependencyError("hub", result.error or "unexpected response")

        user_id = parse_int(result.data.get("id")) if isinstance(result.data, dict) else None
        if user_id is None:
            raise DependencyError("hub", "user response carries no id")
        self._user_id = user_id
        return user_id

    def has_over_user(self, user_id: int, roles: Sequence[str]) -> PermissionGrant:
        return self._verify(f"/v1/office/verify/user/{user_id}", roles)

    def has_over_org_unit(self, org_unit_id: int, roles: Sequence[str]) -> PermissionGrant:
        return self._verify(f"/v1/office/verify/org/{org_unit_id}", roles)

    def offices_with_roles(self, roles: Sequence[str]) -> list[dict]:
        result = self._call("/v1/user/offices", params=self._roles_param(roles))
        if not result.ok:
            raise DependencyError("hub", result.error or "unexpected response")
        return list(self._offices(result.data))
