from __future__ import annotations

import logging
from typing import Callable, Dict, List

from sqlalchemy import event
from sqlalchemy.orm import Session, SessionTransaction

logger = logging.getLogger(__name__)

_HOOKS_KEY = "after_commit_hooks"


def _current_transaction(db: Session) -> SessionTransaction:
    # innermost savepoint if any, else the root transaction
    return db.get_nested_transaction() or db.get_transaction()


def _pending(db: Session) -> Dict[SessionTransaction, List[Callable[[], None]]]:
    return db.info.setdefault(_HOOKS_KEY, {})


def run_after_commit(db: Session, fn: Callable[[], None]) -> None:
    """
    Defer ``fn`` until the session's outermost transaction commits.

    Hooks are tracked per transaction. A released savepoint hands its hooks
    to the enclosing transaction; a savepoint or transaction that rolls back
    drops its own hooks. With no open transaction ``fn`` runs immediately.
    """
    if not db.in_transaction():
        _invoke(fn)
        return
    _pending(db).setdefault(_current_transaction(db), []).append(fn)


def pending_after_commit(db: Session) -> int:
    return sum(len(hooks) for hooks in db.info.get(_HOOKS_KEY, {}).values())


def _invoke(fn: Callable[[], None]) -> None:
    try:
        fn()
    except Exception:
        logger.exception("after-commit hook failed")


@event.listens_for(Session, "after_commit")
def _drain_hooks(session: Session) -> None:
    pending = session.info.get(_HOOKS_KEY)
    if not pending:
        return

    # fires for savepoint release too; the committing transaction is still current
    committed = _current_transaction(session)
    hooks = pending.pop(committed, [])
    if committed.nested:
        if hooks:
            pending.setdefault(committed.parent, []).extend(hooks)
        return

    for fn in hooks:
        _invoke(fn)


@event.listens_for(Session, "after_transaction_end")
def _discard_hooks(session: Session, transaction: SessionTransaction) -> None:
    # committed transactions were already drained or handed up in _drain_hooks
    pending = session.info.get(_HOOKS_KEY)
    if not pending:
        return
    dropped = pending.pop(transaction, None)
    if dropped:
        logger.debug("discarded %d after-commit hook(s) on rollback", len(dropped))
    if transaction.parent is None:
        pending.clear()
