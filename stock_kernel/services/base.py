"""
BaseService -- abstract base for session-bound kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    services that mutate rows inside a caller-owned transaction.  The
    ledger writer is the exception: it drives a MovementStore whose
    primitives each run in their own transaction.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Services flush within the caller's transaction and never commit or
      roll back themselves.  The caller (usually ``session_scope``) owns
      commit/rollback.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for session-bound kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session):
        self.session = session
