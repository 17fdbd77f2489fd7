import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from passlib.context import CryptContext

from config import settings
from models import Identity, Scope

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 4


def hash_password(raw: str) -> str:
    return pwd_context.hash(raw)


def verify_password(raw: str, hashed: str) -> bool:
    return pwd_context.verify(raw, hashed)


class UserDirectory:
    """
    Flat JSON account lists, one file per scope ('user' and 'admin').

    Only answers pass/fail identity questions; the inventory ledger never
    sees passwords.
    """

    def __init__(self, users_file: Optional[str] = None, admin_users_file: Optional[str] = None):
        self.files = {
            Scope.USER: Path(users_file or settings.USERS_FILE),
            Scope.ADMIN: Path(admin_users_file or settings.ADMIN_USERS_FILE),
        }
        for path in self.files.values():
            if not path.exists():
                path.write_text("[]", encoding="utf-8")

    def register(self, username: str, password: str,
                 scope: Union[Scope, str] = Scope.USER) -> Tuple[bool, str]:
        """
        Create an account in the given scope.

        Returns:
            Tuple of (success, message)
        """
        scope = Scope(scope)
        if not username or not password:
            return False, "Username and password are required"
        if len(username) < MIN_USERNAME_LENGTH:
            return False, f"Username must be at least {MIN_USERNAME_LENGTH} characters long"
        if len(password) < MIN_PASSWORD_LENGTH:
            return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"

        users = self._load(scope)
        if any(u.get("username", "").lower() == username.lower() for u in users):
            return False, "Username already exists"

        prefix = "ADMIN" if scope is Scope.ADMIN else "USER"
        users.append({
            "id": f"{prefix}-{int(time.time() * 1000)}",
            "username": username,
            "password_hash": hash_password(password),
            "createdAt": datetime.now(timezone.utc).isoformat(),
            "role": scope.value,
        })
        try:
            self._save(scope, users)
        except OSError:
            logger.exception("Could not save %s accounts", scope.value)
            return False, "Failed to save user"
        logger.info("Registered %s account %s", scope.value, username)
        return True, "User registered successfully"

    def authenticate(self, username: str, password: str,
                     scope: Union[Scope, str] = Scope.USER) -> Optional[Identity]:
        """Return the matching identity, or None if the credentials are wrong."""
        scope = Scope(scope)
        if not username or not password:
            return None
        for user in self._load(scope):
            if user.get("username", "").lower() != username.lower():
                continue
            hashed = user.get("password_hash")
            if hashed and verify_password(password, hashed):
                return Identity(id=user["id"], name=user["username"], role=scope.value)
            return None
        return None

    def _load(self, scope: Scope) -> List[Dict[str, Any]]:
        try:
            return json.loads(self.files[scope].read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Could not load %s accounts", scope.value)
            return []

    def _save(self, scope: Scope, users: List[Dict[str, Any]]) -> None:
        self.files[scope].write_text(json.dumps(users, indent=2), encoding="utf-8")
