from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import httpx

from integrations.backend import AuthSession, BackendError, User

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"
FIRESTORE_URL = "https://firestore.googleapis.com/v1"
logger = logging.getLogger(__name__)


def _raise_for_backend_error(resp: httpx.Response) -> None:
    if not resp.is_error:
        return
    try:
        message = resp.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        message = resp.text or resp.reason_phrase
    raise BackendError(str(message), status_code=resp.status_code)


def _send(http: httpx.Client, method: str, url: str, **kwargs: Any) -> Any:
    try:
        resp = http.request(method, url, **kwargs)
    except httpx.HTTPError as exc:
        logger.warning("firebase.request_failed", extra={"method": method, "url": url, "error": str(exc)})
        raise BackendError(f"Network error: {exc}") from exc
    _raise_for_backend_error(resp)
    if not resp.content:
        return {}
    return resp.json()


def _expires_at(expires_in: Any) -> datetime:
    return datetime.now(timezone.utc) + timedelta(seconds=int(expires_in or 3600))


class FirebaseAuthClient:
    """Email/password auth against the Identity Toolkit REST API."""

    def __init__(self, api_key: str, http: httpx.Client) -> None:
        if not api_key:
            raise ValueError("Missing api_key")
        self._api_key = api_key
        self._http = http

    def _identity(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        return _send(
            self._http,
            "POST",
            f"{IDENTITY_TOOLKIT_URL}/accounts:{endpoint}",
            params={"key": self._api_key},
            json=payload,
        )

    def _session(self, payload: dict[str, Any]) -> AuthSession:
        return AuthSession(
            user=User(uid=payload["localId"], email=payload.get("email", "")),
            id_token=payload["idToken"],
            refresh_token=payload["refreshToken"],
            expires_at=_expires_at(payload.get("expiresIn")),
        )

    def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        # Firebase signs the new account in straight away.
        payload = self._identity(
            "signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._session(payload)

    def sign_in(self, email: str, password: str) -> AuthSession:
        payload = self._identity(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._session(payload)

    def refresh(self, refresh_token: str) -> AuthSession:
        payload = _send(
            self._http,
            "POST",
            SECURE_TOKEN_URL,
            params={"key": self._api_key},
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
        )
        id_token = payload["id_token"]
        lookup = self._identity("lookup", {"idToken": id_token})
        users = lookup.get("users") or []
        if not users:
            raise BackendError("USER_NOT_FOUND")
        return AuthSession(
            user=User(uid=users[0]["localId"], email=users[0].get("email", "")),
            id_token=id_token,
            refresh_token=payload.get("refresh_token", refresh_token),
            expires_at=_expires_at(payload.get("expires_in")),
        )

    def sign_out(self, session: AuthSession) -> None:
        # Tokens are client held; dropping them ends the session.
        return None


def encode_value(value: Any) -> dict[str, Any]:
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    raise TypeError(f"Unsupported field type: {type(value).__name__}")


def decode_value(value: dict[str, Any]) -> Any:
    if "stringValue" in value:
        return value["stringValue"]
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return value["timestampValue"]
    if "nullValue" in value:
        return None
    raise ValueError(f"Unsupported Firestore value: {sorted(value)}")


def decode_document(document: dict[str, Any]) -> dict[str, Any]:
    fields = {name: decode_value(raw) for name, raw in (document.get("fields") or {}).items()}
    fields["id"] = document["name"].rsplit("/", 1)[-1]
    return fields


class FirestoreClient:
    """Cloud Firestore REST client authenticated with the user's id token."""

    def __init__(
        self,
        project_id: str,
        http: httpx.Client,
        token_provider: Callable[[], Optional[str]],
        database: str = "(default)",
    ) -> None:
        if not project_id:
            raise ValueError("Missing project_id")
        self._http = http
        self._token_provider = token_provider
        self._base_url = f"{FIRESTORE_URL}/projects/{project_id}/databases/{database}/documents"

    def _headers(self) -> dict[str, str]:
        token = self._token_provider()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def query_equal(self, collection: str, field: str, value: Any) -> list[dict[str, Any]]:
        body = {
            "structuredQuery": {
                "from": [{"collectionId": collection}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": field},
                        "op": "EQUAL",
                        "value": encode_value(value),
                    }
                },
            }
        }
        rows = _send(self._http, "POST", f"{self._base_url}:runQuery", json=body, headers=self._headers())
        # Rows without a "document" key only carry readTime (empty result).
        return [decode_document(row["document"]) for row in rows if "document" in row]

    def add(self, collection: str, fields: dict[str, Any]) -> str:
        body = {"fields": {name: encode_value(value) for name, value in fields.items()}}
        document = _send(self._http, "POST", f"{self._base_url}/{collection}", json=body, headers=self._headers())
        return document["name"].rsplit("/", 1)[-1]

    def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        params = [("updateMask.fieldPaths", name) for name in fields]
        params.append(("currentDocument.exists", "true"))
        body = {"fields": {name: encode_value(value) for name, value in fields.items()}}
        _send(
            self._http,
            "PATCH",
            f"{self._base_url}/{collection}/{document_id}",
            params=params,
            json=body,
            headers=self._headers(),
        )

    def delete(self, collection: str, document_id: str) -> None:
        _send(
            self._http,
            "DELETE",
            f"{self._base_url}/{collection}/{document_id}",
            params={"currentDocument.exists": "true"},
            headers=self._headers(),
        )
