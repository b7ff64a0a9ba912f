"""
Member repository functions.

Implements save/find/exists/delete for members plus the schema-driven
create and update helpers. Writes flush inside a SAVEPOINT but never
commit; the surrounding unit of work (``session_scope`` or the caller's own
transaction) decides when changes become permanent.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from myboard.db import models, schemas
from myboard.db.errors import (
    DuplicateUsernameError,
    MemberConstraintError,
    MemberNotFoundError,
    MissingFieldError,
    PlaintextPasswordError,
)
from myboard.utils import passwords

logger = logging.getLogger(__name__)


def _check_writable(member: models.Member) -> None:
    missing = member.missing_fields()
    if missing:
        raise MissingFieldError(missing)
    if member.has_plaintext_password():
        raise PlaintextPasswordError()


def _identity(member: models.Member) -> Optional[int]:
    # read from the instance state so expired attributes are never refreshed
    identity = inspect(member).identity
    return identity[0] if identity else None


def _username_taken(db: Session, username: Optional[str], member_id: Optional[int]) -> bool:
    if username is None:
        return False
    query = db.query(models.Member.id).filter(models.Member.username == username)
    if member_id is not None:
        query = query.filter(models.Member.id != member_id)
    return query.first() is not None


def _translate_integrity_error(db: Session, exc: IntegrityError, candidates) -> MemberConstraintError:
    """Map a database rejection onto the member error it stands for.

    ``candidates`` are the ``(username, id)`` pairs that were being written.
    """
    for username, member_id in candidates:
        if _username_taken(db, username, member_id):
            return DuplicateUsernameError(username)
    return MemberConstraintError(str(exc.orig))


def _reattach(db: Session, member: models.Member) -> models.Member:
    """Merge a detached member back into ``db``; its row must still exist."""
    member_id = _identity(member)
    if db.get(models.Member, member_id) is None:
        # merging would re-insert the row under its old id
        raise MemberNotFoundError(member_id)
    return db.merge(member)


def save(db: Session, member: models.Member) -> models.Member:
    """Insert a new member or write the pending changes of an existing one.

    Detached members (for example ones returned from an earlier unit of
    work) are merged back into the session and the merged instance is
    returned; ``MemberNotFoundError`` is raised if their row was deleted in
    the meantime. Raises ``MemberConstraintError`` (or a subclass) when the
    write is rejected; no row is left behind in that case.
    """
    merged = False
    if inspect(member).detached:
        try:
            member = _reattach(db, member)
        except MemberNotFoundError as exc:
            logger.warning("Rejected member write: %s", exc)
            raise
        merged = True

    username = member.username
    member_id = member.id
    try:
        _check_writable(member)
    except MemberConstraintError as exc:
        logger.warning("Rejected member write for %r: %s", username, exc)
        if merged:
            # drop the state copied in by merge
            db.expire(member)
        raise

    try:
        with db.begin_nested():
            db.add(member)
            db.flush()
    except IntegrityError as exc:
        error = _translate_integrity_error(db, exc, [(username, member_id)])
        logger.warning("Rejected member write for %r: %s", username, error)
        raise error from exc

    logger.debug("Saved member id=%s username=%r", member.id, member.username)
    return member


def find_by_id(db: Session, member_id: int) -> Optional[models.Member]:
    """Return the member with ``member_id`` or None."""
    return db.get(models.Member, member_id)


def get_or_raise(db: Session, member_id: int) -> models.Member:
    """Return the member with ``member_id``; raise MemberNotFoundError if absent."""
    member = find_by_id(db, member_id)
    if member is None:
        raise MemberNotFoundError(member_id)
    return member


def find_by_username(db: Session, username: str) -> Optional[models.Member]:
    """Return the member whose username matches exactly, or None."""
    return db.query(models.Member).filter(models.Member.username == username).first()


def exists_by_username(db: Session, username: str) -> bool:
    """True iff a member row with exactly this username exists."""
    query = db.query(models.Member).filter(models.Member.username == username)
    return bool(db.query(query.exists()).scalar())


def delete(db: Session, member: models.Member) -> None:
    """Remove ``member``'s row. Members that were never saved are ignored."""
    state = inspect(member)
    if state.transient or state.pending:
        if state.pending:
            db.expunge(member)
        return

    member_id = _identity(member)
    target = member
    if state.detached:
        target = db.get(models.Member, member_id)
        if target is None:
            # already gone
            return
    db.delete(target)
    db.flush()
    logger.debug("Deleted member id=%s", member_id)


def flush(db: Session) -> None:
    """Write pending member changes, validating them first.

    ``last_modified_date`` advances for every row that actually changed.
    Rejections are raised as the same errors ``save`` uses.
    """
    touched = [obj for obj in list(db.new) + list(db.dirty) if isinstance(obj, models.Member)]
    for member in touched:
        try:
            _check_writable(member)
        except MemberConstraintError as exc:
            logger.warning("Rejected member write for %r: %s", member.username, exc)
            raise

    candidates = [(member.username, member.id) for member in touched]
    try:
        with db.begin_nested():
            db.flush()
    except IntegrityError as exc:
        error = _translate_integrity_error(db, exc, candidates)
        logger.warning("Rejected member flush: %s", error)
        raise error from exc


def create_member(db: Session, payload: schemas.MemberCreate, encoder: passwords.PasswordEncoder) -> models.Member:
    """Build a member from ``payload``, hashing its password, and save it."""
    member = models.Member(
        username=payload.username,
        password=passwords.EncodedPassword(encoder.encode(payload.password)),
        name=payload.name,
        nickname=payload.nickname,
        age=payload.age,
        role=payload.role,
    )
    return save(db, member)


def update_member(
    db: Session,
    member: models.Member,
    payload: schemas.MemberUpdate,
    encoder: passwords.PasswordEncoder,
) -> models.Member:
    """Apply the non-null fields of ``payload`` and flush."""
    if payload.name is not None:
        member.update_name(payload.name)
    if payload.nickname is not None:
        member.update_nickname(payload.nickname)
    if payload.age is not None:
        member.update_age(payload.age)
    if payload.password is not None:
        member.update_password(encoder, payload.password)
    flush(db)
    return member
