from __future__ import annotations

import hashlib
import hmac
import json
import logging
import re
import secrets
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from sqlalchemy import or_
from sqlalchemy.engine import Engine
from sqlmodel import select

from data import (
    Account,
    SessionToken,
    StoredDocument,
    create_db_engine,
    ensure_document_schema,
    session_scope,
)
from integrations.backend import AuthSession, BackendError, User

ID_TOKEN_TTL_SECONDS = 3600
MAX_LIVE_ID_TOKENS = 5
MIN_PASSWORD_LENGTH = 6
PERMISSION_DENIED = "Missing or insufficient permissions."
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PBKDF2_ROUNDS = 120_000
logger = logging.getLogger(__name__)


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _hash_password(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), _PBKDF2_ROUNDS)
    return digest.hex()


class LocalBackend:
    """Self-hosted stand-in for the managed auth + document service.

    Accounts, tokens and documents live in one SQL database. Document access
    follows the rule the managed backend is configured with: a signed-in user
    may only read and write documents whose owner field equals their uid.
    """

    def __init__(self, database_url: str, owner_field: str = "userId") -> None:
        self.engine: Engine = create_db_engine(database_url)
        self.owner_field = owner_field
        ensure_document_schema(self.engine, owner_field)

    def auth_client(self) -> "LocalAuthClient":
        return LocalAuthClient(self)

    def document_client(self, token_provider: Callable[[], Optional[str]]) -> "LocalDocumentClient":
        return LocalDocumentClient(self, token_provider)

    def uid_for_token(self, id_token: str | None) -> str | None:
        if not id_token:
            return None
        with session_scope(self.engine) as session:
            token = session.get(SessionToken, id_token)
            if not token or token.kind != "id":
                return None
            if token.expires_at is not None and token.expires_at <= time.time():
                return None
            return token.uid


class LocalAuthClient:
    def __init__(self, backend: LocalBackend) -> None:
        self._backend = backend

    def _issue(self, session, account: Account, refresh_token: str | None = None) -> AuthSession:
        refresh_token = refresh_token or secrets.token_urlsafe(32)
        if session.get(SessionToken, refresh_token) is None:
            session.add(SessionToken(token=refresh_token, uid=account.uid, kind="refresh"))
        now = time.time()
        expired = session.exec(
            select(SessionToken).where(
                SessionToken.kind == "id",
                SessionToken.uid == account.uid,
                SessionToken.expires_at <= now,
            )
        ).all()
        # Browser tabs share a refresh token, so a few recent id tokens stay valid.
        live = session.exec(
            select(SessionToken)
            .where(
                SessionToken.kind == "id",
                SessionToken.refresh_token == refresh_token,
                SessionToken.expires_at > now,
            )
            .order_by(SessionToken.expires_at.desc())
        ).all()
        for token in [*expired, *live[MAX_LIVE_ID_TOKENS - 1 :]]:
            session.delete(token)
        expires_at = now + ID_TOKEN_TTL_SECONDS
        id_token = SessionToken(
            token=secrets.token_urlsafe(32),
            uid=account.uid,
            kind="id",
            refresh_token=refresh_token,
            expires_at=expires_at,
        )
        session.add(id_token)
        session.commit()
        return AuthSession(
            user=User(uid=account.uid, email=account.email),
            id_token=id_token.token,
            refresh_token=refresh_token,
            expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
        )

    def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        email_normalized = _normalize_email(email)
        if not _EMAIL_RE.match(email_normalized):
            raise BackendError("INVALID_EMAIL", status_code=400)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise BackendError(
                f"WEAK_PASSWORD : Password should be at least {MIN_PASSWORD_LENGTH} characters",
                status_code=400,
            )
        with session_scope(self._backend.engine) as session:
            existing = session.exec(select(Account).where(Account.email == email_normalized)).first()
            if existing:
                raise BackendError("EMAIL_EXISTS", status_code=400)
            salt = secrets.token_hex(16)
            session.add(
                Account(
                    uid=uuid.uuid4().hex,
                    email=email_normalized,
                    password_hash=_hash_password(password, salt),
                    password_salt=salt,
                    created_at=time.time(),
                )
            )
            session.commit()
        logger.info("local_auth.sign_up", extra={"email": email_normalized})
        # Account creation does not sign the user in here.
        return None

    def sign_in(self, email: str, password: str) -> AuthSession:
        email_normalized = _normalize_email(email)
        with session_scope(self._backend.engine) as session:
            account = session.exec(select(Account).where(Account.email == email_normalized)).first()
            if not account or not hmac.compare_digest(
                account.password_hash, _hash_password(password or "", account.password_salt)
            ):
                raise BackendError("INVALID_LOGIN_CREDENTIALS", status_code=400)
            return self._issue(session, account)

    def refresh(self, refresh_token: str) -> AuthSession:
        with session_scope(self._backend.engine) as session:
            token = session.get(SessionToken, refresh_token or "")
            if not token or token.kind != "refresh":
                raise BackendError("INVALID_REFRESH_TOKEN", status_code=400)
            account = session.get(Account, token.uid)
            if not account:
                raise BackendError("USER_NOT_FOUND", status_code=400)
            return self._issue(session, account, refresh_token=refresh_token)

    def sign_out(self, session: AuthSession) -> None:
        with session_scope(self._backend.engine) as db:
            tokens = db.exec(
                select(SessionToken).where(
                    or_(
                        SessionToken.token == session.refresh_token,
                        SessionToken.refresh_token == session.refresh_token,
                    )
                )
            ).all()
            for token in tokens:
                db.delete(token)
            db.commit()


class LocalDocumentClient:
    def __init__(self, backend: LocalBackend, token_provider: Callable[[], Optional[str]]) -> None:
        self._backend = backend
        self._token_provider = token_provider

    def _require_uid(self) -> str:
        uid = self._backend.uid_for_token(self._token_provider())
        if not uid:
            raise BackendError(PERMISSION_DENIED, status_code=403)
        return uid

    def _load(self, session, collection: str, document_id: str, verb: str) -> StoredDocument:
        document = session.get(StoredDocument, document_id)
        if not document or document.collection != collection:
            raise BackendError(f"No document to {verb}: {collection}/{document_id}", status_code=404)
        return document

    def _check_owner(self, uid: str, fields: dict[str, Any]) -> None:
        if fields.get(self._backend.owner_field) != uid:
            raise BackendError(PERMISSION_DENIED, status_code=403)

    def query_equal(self, collection: str, field: str, value: Any) -> list[dict[str, Any]]:
        uid = self._require_uid()
        # Only queries constrained to the caller's own documents are allowed.
        if field != self._backend.owner_field or value != uid:
            raise BackendError(PERMISSION_DENIED, status_code=403)
        with session_scope(self._backend.engine) as session:
            documents = session.exec(
                select(StoredDocument).where(
                    StoredDocument.collection == collection,
                    StoredDocument.owner_id == uid,
                )
            ).all()
            return [{**json.loads(document.fields_json), "id": document.id} for document in documents]

    def add(self, collection: str, fields: dict[str, Any]) -> str:
        uid = self._require_uid()
        self._check_owner(uid, fields)
        document = StoredDocument(
            id=uuid.uuid4().hex[:20],
            collection=collection,
            owner_id=uid,
            fields_json=json.dumps(fields),
        )
        with session_scope(self._backend.engine) as session:
            session.add(document)
            session.commit()
            return document.id

    def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        uid = self._require_uid()
        with session_scope(self._backend.engine) as session:
            document = self._load(session, collection, document_id, "update")
            current = json.loads(document.fields_json)
            self._check_owner(uid, current)
            merged = {**current, **fields}
            self._check_owner(uid, merged)
            document.fields_json = json.dumps(merged)
            session.add(document)
            session.commit()

    def delete(self, collection: str, document_id: str) -> None:
        uid = self._require_uid()
        with session_scope(self._backend.engine) as session:
            document = self._load(session, collection, document_id, "delete")
            self._check_owner(uid, json.loads(document.fields_json))
            session.delete(document)
            session.commit()
