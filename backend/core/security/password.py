"""
Password hashing for reader and staff accounts.

bcrypt through passlib. The configured cost is also the minimum accepted
cost: a hash made with fewer rounds still verifies, but is reported for
upgrade so the login that proves the password can store a fresh hash.
"""

from typing import Optional

from passlib.context import CryptContext

# bcrypt ignores everything past the first 72 bytes
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
            bcrypt__min_rounds=rounds,
        )
        self._decoy: Optional[str] = None

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        return self._context.verify(password, password_hash)

    def verify_and_update(self, password: str, password_hash: str) -> tuple[bool, Optional[str]]:
        """
        Check ``password`` and, when it matches a hash below the current
        cost, return a replacement hash alongside ``True``.
        """
        return self._context.verify_and_update(password, password_hash)

    def verify_decoy(self, password: str) -> bool:
        """Spend one bcrypt check for a login whose account does not exist.

        Keeps unknown and known emails indistinguishable by response time.
        Always False.
        """
        if self._decoy is None:
            self._decoy = self._context.hash("decoy-password-never-issued")
        self._context.verify(password, self._decoy)
        return False
