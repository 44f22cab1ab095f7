"""
Password policy and bcrypt hashing.
"""

import string
from dataclasses import dataclass
from typing import Dict, List, Optional

import bcrypt

BCRYPT_MAX_BYTES = 72


def character_classes(password: str) -> Dict[str, bool]:
    return {
        "lowercase": any(c.islower() for c in password),
        "uppercase": any(c.isupper() for c in password),
        "digits": any(c.isdigit() for c in password),
        "symbols": any(c in string.punctuation or c.isspace() for c in password),
    }


@dataclass(frozen=True)
class PasswordPolicy:
    """
    The one password policy applied to every password write.

    Business Rules:
    - At least min_length characters
    - At least min_character_classes of lowercase/uppercase/digits/symbols
    - At most 72 bytes of UTF-8 (bcrypt ignores anything beyond)
    """

    min_length: int = 8
    min_character_classes: int = 3

    def violations(self, password: Optional[str]) -> List[str]:
        if not password:
            return ["Password is required"]

        problems = []
        if len(password) < self.min_length:
            problems.append(f"Password must be at least {self.min_length} characters")
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            problems.append(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
        if sum(character_classes(password).values()) < self.min_character_classes:
            problems.append(
                f"Password must contain at least {self.min_character_classes} of: "
                "lowercase letters, uppercase letters, digits, symbols"
            )
        return problems

    def summarize(self, password: str) -> dict:
        """Shape of a password for audit details; never the password itself."""
        return {"length": len(password), **character_classes(password)}


class PasswordHasher:
    """bcrypt with a configurable cost"""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        self._dummy_hash = bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(rounds))

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(self.rounds)).decode("utf-8")

    def verify(self, password: Optional[str], password_hash: Optional[str]) -> bool:
        if not password:
            return False
        password_bytes = password.encode("utf-8")
        if not password_hash or len(password_bytes) > BCRYPT_MAX_BYTES:
            # Every rejection spends one bcrypt check
            return self.dummy_verify(password)
        try:
            return bcrypt.checkpw(password_bytes, password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return self.dummy_verify(password)

    def dummy_verify(self, password: Optional[str]) -> bool:
        """Spend the same bcrypt work as a real check when the user is absent."""
        candidate = (password or "").encode("utf-8")[:BCRYPT_MAX_BYTES]
        bcrypt.checkpw(candidate, self._dummy_hash)
        return False
