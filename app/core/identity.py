"""
Supabase Auth (GoTrue) REST client.

- Admin calls authenticate with the service role key; it never leaves this module
- Public calls (password grant, recovery) use the anon key
- Every call is bounded by the configured timeout
- 4xx answers become ProviderRejection with the provider's own message,
  transport errors, timeouts and 5xx answers become ProviderError
"""
from __future__ import annotations
from typing import Any, Optional

import httpx

from core.config import Settings
from core.errors import ProviderError, ProviderRejection


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text[:200] or f"HTTP {resp.status_code}"
    if isinstance(payload, dict):
        for key in ("msg", "message", "error_description", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {resp.status_code}"


class IdentityClient:
    """Thin wrapper over the identity provider endpoints this service uses."""

    def __init__(self, http: httpx.Client, service_key: str, anon_key: str, page_size: int = 1000):
        self._http = http
        self._service_key = service_key
        self._anon_key = anon_key
        self.page_size = page_size

    @classmethod
    def from_settings(cls, settings: Settings) -> "IdentityClient":
        http = httpx.Client(
            base_url=f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1",
            timeout=settings.PROVIDER_TIMEOUT_S,
        )
        return cls(
            http,
            service_key=settings.SUPABASE_SERVICE_ROLE_KEY,
            anon_key=settings.SUPABASE_ANON_KEY,
            page_size=settings.IDENTITY_PAGE_SIZE,
        )

    def close(self) -> None:
        self._http.close()

    def _headers(self, privileged: bool) -> dict:
        key = self._service_key if privileged else self._anon_key
        return {"apikey": key, "Authorization": f"Bearer {key}"}

    def _request(
        self,
        method: str,
        path: str,
        *,
        privileged: bool = True,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        try:
            resp = self._http.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._headers(privileged),
            )
        except httpx.TimeoutException as exc:
            raise ProviderError("identity", f"timeout on {method} {path}") from exc
        except httpx.HTTPError as exc:
            raise ProviderError("identity", f"{method} {path}: {exc}") from exc

        if resp.status_code >= 500:
            raise ProviderError("identity", f"{method} {path}: HTTP {resp.status_code} {_error_message(resp)}")
        if resp.status_code >= 400:
            raise ProviderRejection(_error_message(resp), meta={"status": resp.status_code})
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise ProviderError("identity", f"{method} {path}: invalid JSON") from exc

    # --- admin ---

    def list_users(self) -> list[dict]:
        """Return every account in the directory, walking the pages."""
        users: list[dict] = []
        page = 1
        while True:
            data = self._request(
                "GET",
                "/admin/users",
                params={"page": page, "per_page": self.page_size},
            ) or {}
            batch = data.get("users") or []
            users.extend(batch)
            if len(batch) < self.page_size:
                return users
            page += 1

    def get_user(self, account_id: str) -> dict:
        return self._request("GET", f"/admin/users/{account_id}")

    def update_user(self, account_id: str, attributes: dict) -> dict:
        return self._request("PUT", f"/admin/users/{account_id}", json=attributes)

    def invite_user_by_email(self, email: str, data: dict, redirect_to: Optional[str] = None) -> dict:
        params = {"redirect_to": redirect_to} if redirect_to else None
        return self._request("POST", "/invite", params=params, json={"email": email, "data": data})

    # --- public ---

    def verify_password(self, email: str, password: str) -> bool:
        """True when the password grant accepts the credentials."""
        try:
            self._request(
                "POST",
                "/token",
                privileged=False,
                params={"grant_type": "password"},
                json={"email": email, "password": password},
            )
        except ProviderRejection:
            return False
        return True

    def send_recovery(self, email: str, redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        self._request("POST", "/recover", privileged=False, params=params, json={"email": email})
