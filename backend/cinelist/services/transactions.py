"""
Transaction runner for roster-mutating operations.

An operation is a callable taking the Session. It reads what it needs, checks
invariants, performs its compare-and-set writes and returns a payload. The
runner commits it, or rolls it back and runs it again from a fresh read when it
lost a race. Nothing is ever committed half-way.
"""
import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from cinelist.core.config import settings
from cinelist.services.errors import (
    ListServiceError,
    StorageConflictError,
    TransientStoreError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_in_transaction(
    db: Session,
    operation: Callable[[Session], T],
    *,
    name: str = "operation",
    attempts: int | None = None,
) -> T:
    """
    Run *operation* and commit it, retrying lost races.

    Retried: StorageConflictError, and a unique-constraint violation once (a
    concurrent writer got there first; the re-run sees its row and reports the
    proper typed error). A violation that survives the re-run comes from the
    committed state itself, so it is re-raised. Everything else is rolled back
    and re-raised. Store connectivity failures surface as TransientStoreError.
    """
    max_attempts = attempts or settings.ROSTER_RETRY_ATTEMPTS
    seen_integrity_error = False

    for attempt in range(1, max_attempts + 1):
        try:
            result = operation(db)
            db.commit()
            return result
        except StorageConflictError as exc:
            db.rollback()
            logger.warning("%s: conflict on attempt %d/%d (%s)", name, attempt, max_attempts, exc)
        except IntegrityError as exc:
            db.rollback()
            if seen_integrity_error:
                logger.error("%s: constraint violated again after re-read (%s)", name, exc.orig)
                raise
            seen_integrity_error = True
            logger.warning(
                "%s: constraint race on attempt %d/%d (%s)",
                name, attempt, max_attempts, exc.orig,
            )
        except ListServiceError:
            db.rollback()
            raise
        except OperationalError as exc:
            db.rollback()
            logger.error("%s: store unavailable: %s", name, exc.orig, exc_info=True)
            raise TransientStoreError("The list store is temporarily unavailable") from exc
        except Exception:
            db.rollback()
            raise

    logger.error("%s: giving up after %d conflicting attempts", name, max_attempts)
    raise StorageConflictError("The list was changed concurrently, please try again")
