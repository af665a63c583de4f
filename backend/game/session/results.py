"""Typed outcomes returned by SessionService operations.

Service operations never raise for client-input problems. They return
Ok(value) on success or Err(code, message) on failure; callers branch
with isinstance and hand Ok values to the notifier.
"""

from dataclasses import dataclass

from game.logic.enums import SessionErrorCode
from game.session.models import Session


@dataclass(frozen=True)
class Ok[T]:
    value: T


@dataclass(frozen=True)
class Err:
    code: SessionErrorCode
    message: str


@dataclass(frozen=True)
class Joined:
    """Random join found an open lobby; the caller is now its pending joiner."""

    session: Session


@dataclass(frozen=True)
class Created:
    """Random join found no open lobby; a new session owned by the caller was created."""

    session: Session


type SessionResult = Ok[Session] | Err
type RandomJoinResult = Ok[Joined | Created] | Err
