# clinic_slots/scheduling/transactions.py
import logging
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from clinic_slots.core.config import SLOT_BOOKING_MAX_RETRIES
from clinic_slots.scheduling.errors import ConcurrencyConflict, InvalidState

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_in_transaction(
    db: Session,
    operation: Callable[[], T],
    description: str,
    max_attempts: Optional[int] = None,
) -> T:
    """
    Run `operation` and commit it as one unit of work.

    Versioned rows (slots, schedules, blocks, leaves, appointments) raise
    StaleDataError when another transaction changed them between read and
    write. The whole operation is then rolled back and re-run from a fresh
    read, so its precondition checks see the winner's state. A constraint
    violation surfaces as InvalidState; any other error rolls back and
    propagates unchanged.
    """
    attempts = max_attempts or SLOT_BOOKING_MAX_RETRIES
    for attempt in range(1, attempts + 1):
        try:
            result = operation()
            db.commit()
            return result
        except StaleDataError:
            db.rollback()
            logger.warning("Concurrent update during %s (attempt %d/%d)", description, attempt, attempts)
        except IntegrityError as exc:
            db.rollback()
            logger.warning("Constraint violation during %s: %s", description, exc.orig)
            raise InvalidState(f"Rejected by a database constraint during {description}") from exc
        except Exception:
            db.rollback()
            raise
    raise ConcurrencyConflict(f"Gave up on {description} after {attempts} conflicting attempts")
