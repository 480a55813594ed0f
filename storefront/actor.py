"""Actor registration, login, sessions and lookups."""

from __future__ import annotations

import hashlib
import hmac
import secrets
import uuid
from datetime import datetime, timezone
from http import HTTPStatus

from .errors import DomainError, ErrorKind, parse_uuid
from .models import Session

_NIL = uuid.UUID(int=0)
_SCHEME = "pbkdf2_sha256"


def _unauthorized(message):
    return DomainError(HTTPStatus.UNAUTHORIZED, ErrorKind.UNAUTHORIZED, message, PermissionError(message))


class PasswordHasher:
    """Salted PBKDF2-SHA256 password hashing; an empty password hashes to an empty string."""

    def __init__(self, iterations=100_000):
        self.iterations = iterations

    def hash(self, password):
        """Return an encoded hash of ``password``, or "" when it is empty."""
        if not password:
            return ""
        salt = secrets.token_bytes(16)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, self.iterations)
        return f"{_SCHEME}${self.iterations}${salt.hex()}${digest.hex()}"

    def verify(self, password, hashed):
        """Raise a 401 domain error unless ``password`` matches ``hashed``."""
        try:
            scheme, iterations, salt_hex, digest_hex = hashed.split("$")
            if scheme != _SCHEME:
                raise ValueError(scheme)
            salt = bytes.fromhex(salt_hex)
            expected = bytes.fromhex(digest_hex)
            rounds = int(iterations)
        except (ValueError, AttributeError):
            raise _unauthorized("invalid credentials") from None
        digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, rounds)
        if not hmac.compare_digest(digest, expected):
            raise _unauthorized("invalid credentials")


def split_full_name(full_name):
    """Split a full name into its first word and the remaining words."""
    parts = full_name.split()
    first = parts[0] if parts else ""
    last = " ".join(parts[1:])
    return first, last


class ActorService:
    """Creates actors, checks their credentials and manages their sessions."""

    def __init__(self, store, hasher=None):
        self.store = store
        self.hasher = hasher if hasher is not None else PasswordHasher()

    def create_actor(self, new_actor):
        hashed = self.hasher.hash(new_actor.password)
        first_name, last_name = split_full_name(new_actor.full_name)
        return self.store.create_actor(
            merchant_id=new_actor.merchant_id,
            email=new_actor.email,
            password_hash=hashed,
            first_name=first_name,
            last_name=last_name,
            is_active=True,
            last_login=datetime.now(timezone.utc),
        )

    def login_actor(self, login):
        actor = self.store.get_actor(login.merchant_id, login.email)
        if not actor.is_active:
            raise _unauthorized("actor is inactive")
        self.hasher.verify(login.password, actor.password_hash)
        return actor

    def create_actor_session(self, new_session):
        session = Session(
            id=new_session.refresh_token_id,
            merchant_id=new_session.merchant_id,
            actor_id=new_session.actor_id,
            refresh_token=new_session.refresh_token,
            user_agent=new_session.user_agent,
            client_ip=new_session.client_ip,
            expires_at=new_session.refresh_token_expires_at,
        )
        return self.store.create_session(session)

    def get_actor_session(self, refresh_token_id):
        return self.store.get_session(refresh_token_id)

    def get_actor_by_uid(self, actor_uid):
        """Look an actor up by id in any merchant."""
        return self.get_actor_by_merchant_and_uid(None, actor_uid)

    def get_actor_by_merchant_and_uid(self, merchant_id, actor_uid):
        parsed = parse_uuid(actor_uid, "actor uid")
        scope = None if merchant_id is None or merchant_id == _NIL else merchant_id
        return self.store.get_actor_by_uid(scope, parsed)

    def get_actor_profile_by_merchant_and_email(self, merchant_id, email):
        return self.store.get_actor_profile_by_merchant_and_email(merchant_id, email)

    def list_actors_by_merchant(self, merchant_id):
        return list(self.store.list_actors_by_merchant(merchant_id))

    def list_employees_by_merchant(self, merchant_id):
        return list(self.store.list_employees_by_merchant(merchant_id))