import enum

from sqlalchemy import Column, Enum, Index, Integer, String, event, inspect
from sqlalchemy.orm import validates

from myboard.db.types import UTCDateTime
from myboard.utils.passwords import EncodedPassword
from .base import Base, now_utc


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


# Columns a member must carry before it may be written
REQUIRED_FIELDS = ("username", "password", "name", "nickname", "age", "role")


class Member(Base):
    """A registered forum account.

    Build one with keyword arguments, hand it to
    ``repositories.members.save`` and mutate it afterwards through the
    ``update_*`` methods; the next flush writes the changes.
    """

    __tablename__ = 'members'

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False)
    # Encoder output (EncodedPassword), never the raw password
    password = Column(String(255), nullable=False)
    name = Column(String(50), nullable=False)
    nickname = Column(String(50), nullable=False)
    age = Column(Integer, nullable=False)
    role = Column(
        Enum(Role, name='ck_members_role', native_enum=False, length=20, create_constraint=True),
        nullable=False,
    )

    # Auditing; stamped by the before_insert hook below
    created_date = Column(UTCDateTime(), nullable=False)
    last_modified_date = Column(UTCDateTime(), nullable=False, onupdate=now_utc)

    __table_args__ = (
        Index('ux_members_username', 'username', unique=True),
        # never hand out the id of a deleted row again
        {'sqlite_autoincrement': True},
    )

    # set by the password validator; rows loaded from the database start clean
    _plaintext_password = False

    @validates('id', 'created_date')
    def _validate_immutable(self, key, value):
        state = inspect(self)
        current = state.dict.get(key)
        if state.has_identity and current is not None and value != current:
            raise ValueError(f"{key} cannot be changed once the member is persisted")
        return value

    @validates('role')
    def _validate_role(self, key, value):
        if value is None or isinstance(value, Role):
            return value
        raise ValueError(f"Unknown member role: {value!r}")

    @validates('password')
    def _validate_password(self, key, value):
        # re-assigning the stored value (e.g. during merge) keeps the flag
        if value is not None and value != inspect(self).dict.get(key):
            self._plaintext_password = not isinstance(value, EncodedPassword)
        return value

    def has_plaintext_password(self) -> bool:
        """True when the password was last set to something no encoder produced."""
        return self._plaintext_password

    def missing_fields(self) -> list[str]:
        return [field for field in REQUIRED_FIELDS if getattr(self, field) is None]

    def update_age(self, age: int) -> None:
        self.age = age

    def update_name(self, name: str) -> None:
        self.name = name

    def update_nickname(self, nickname: str) -> None:
        self.nickname = nickname

    def update_password(self, encoder, raw_password: str) -> None:
        """Replace the stored hash with ``encoder.encode(raw_password)``.

        ``encoder`` can be any salted hasher with an ``encode`` method.
        """
        self.password = EncodedPassword(encoder.encode(raw_password))

    def __repr__(self) -> str:
        return f"<Member id={self.id!r} username={self.username!r} role={self.role!r}>"


@event.listens_for(Member, 'before_insert')
def _stamp_audit_dates(mapper, connection, target):
    stamp = now_utc()
    target.created_date = stamp
    target.last_modified_date = stamp
