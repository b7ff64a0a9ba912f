import hashlib
import hmac
import secrets

import pytest
from sqlalchemy.orm import Session

from myboard.db import models

# Member fixtures

@pytest.fixture
def member_factory(encoder):
    """Build unsaved members; pass ``field=None`` to leave a field unset."""
    def _build(**overrides):
        fields = dict(
            username="username",
            password=encoder.encode("123456789"),
            name="Member1",
            nickname="NickName1",
            role=models.Role.USER,
            age=22,
        )
        fields.update(overrides)
        return models.Member(**fields)
    return _build


@pytest.fixture
def clear(db_session: Session):
    """Flush pending work and detach everything, like ending a request."""
    def _clear():
        db_session.flush()
        db_session.expunge_all()
    return _clear


@pytest.fixture
def member_count(db_session: Session):
    def _count():
        return db_session.query(models.Member).count()
    return _count


class SaltedPbkdf2Encoder:
    """Salted PBKDF2-SHA256 in Django's ``algorithm$iterations$salt$hash`` layout."""

    iterations = 1000

    def encode(self, raw: str) -> str:
        salt = secrets.token_hex(8)
        digest = hashlib.pbkdf2_hmac("sha256", raw.encode(), salt.encode(), self.iterations).hex()
        return f"pbkdf2_sha256${self.iterations}${salt}${digest}"

    def matches(self, raw: str, encoded: str) -> bool:
        _, iterations, salt, digest = encoded.split("$")
        candidate = hashlib.pbkdf2_hmac("sha256", raw.encode(), salt.encode(), int(iterations)).hex()
        return hmac.compare_digest(candidate, digest)


@pytest.fixture
def pbkdf2():
    return SaltedPbkdf2Encoder()
