# glossapp/auth.py
"""
Caller identity and master-PIN checks.

Authentication happens upstream: the gateway forwards the verified caller as
X-User-Id / X-User-Role headers and this module trusts them. The master PIN
is a process-wide shared secret wrapped in SecretVerifier so services receive
it as a dependency instead of reading a global.
"""

import hmac
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException, status

from glossapp.config import settings
from glossapp.exceptions import ForbiddenError, InvalidInputError

ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
ROLES = {ROLE_ADMIN, ROLE_STAFF}


@dataclass(frozen=True)
class Caller:
    id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class SecretVerifier:
    """Compares a caller-supplied PIN against the configured secret in constant time."""

    def __init__(self, secret: Optional[str]):
        self._secret = secret

    def matches(self, candidate) -> bool:
        if not self._secret or not candidate:
            return False
        return hmac.compare_digest(str(candidate).encode("utf-8"), self._secret.encode("utf-8"))

    def verify(self, candidate):
        if candidate is None or str(candidate).strip() == "":
            raise InvalidInputError("Master PIN is required", field="master_pin")
        if not self.matches(candidate):
            raise ForbiddenError("Invalid master PIN", code="INVALID_MASTER_PIN")


def require_admin(caller: Caller):
    if not caller.is_admin:
        raise ForbiddenError("Admin access required", code="ADMIN_REQUIRED")


def require_admin_with_pin(caller: Caller, secrets: SecretVerifier, master_pin):
    require_admin(caller)
    secrets.verify(master_pin)


# ── FastAPI dependencies ─────────────────────────────────────────────────────
def get_caller(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Caller:
    """Builds the Caller from gateway headers. Missing identity is a 401."""
    role = (x_user_role or "").strip().lower()
    if not x_user_id or role not in ROLES:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid caller identity",
        )
    return Caller(id=x_user_id, role=role)


_verifier = SecretVerifier(settings.MASTER_PIN)


def get_secret_verifier() -> SecretVerifier:
    return _verifier
