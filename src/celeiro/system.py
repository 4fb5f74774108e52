"""Clock, identifier and token generators.

Services receive these through their constructors so tests can pin time
and randomness.
"""

import base64
import random
import secrets
import string
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, UTC


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, current: datetime):
        if current.tzinfo is None:
            current = current.replace(tzinfo=UTC)
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        """Move the clock forward by a timedelta built from kwargs."""
        self.current = self.current + timedelta(**kwargs)
        return self.current

    def set(self, current: datetime) -> None:
        if current.tzinfo is None:
            current = current.replace(tzinfo=UTC)
        self.current = current


class UUIDGenerator:
    def generate(self) -> str:
        return str(uuid.uuid4())


class IntGenerator:
    """Non-negative integers from a non-cryptographic source."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def generate(self, upper: int) -> int:
        """Return an integer in [0, upper]."""
        return self._rng.randint(0, upper)


class StringGenerator:
    ALPHABET = string.ascii_letters + string.digits

    def generate(self, length: int) -> str:
        """Return a random alphanumeric string."""
        return "".join(secrets.choice(self.ALPHABET) for _ in range(length))


class SessionTokenGenerator:
    """Opaque tokens from the operating system CSPRNG."""

    def generate(self, length: int) -> str:
        """Return `length` random bytes encoded as URL-safe base64."""
        return base64.urlsafe_b64encode(secrets.token_bytes(length)).decode("ascii")


@dataclass
class System:
    """Bundle of the generators a service may need."""

    clock: SystemClock | FrozenClock = field(default_factory=SystemClock)
    uuid: UUIDGenerator = field(default_factory=UUIDGenerator)
    ints: IntGenerator = field(default_factory=IntGenerator)
    strings: StringGenerator = field(default_factory=StringGenerator)
    session_tokens: SessionTokenGenerator = field(default_factory=SessionTokenGenerator)
