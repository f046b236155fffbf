import logging
import re
from datetime import date

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from aircargo.errors import ReferenceGenerationFailure
from aircargo.models.booking import BookingCounter

logger = logging.getLogger(__name__)

REF_ID_PATTERN = re.compile(r"^AC-\d{8}-\d{4}$")
MAX_DAILY_BOOKINGS = 9999


def format_reference(day: date, counter: int) -> str:
    return f"AC-{day:%Y%m%d}-{counter:04d}"


def _increment(db: Session, day: date) -> int:
    return db.execute(
        update(BookingCounter)
        .where(BookingCounter.date_key == day)
        .values(counter=BookingCounter.counter + 1)
        .execution_options(synchronize_session=False)
    ).rowcount


def next_reference(db: Session, day: date) -> str:
    """
    Reserve the next booking reference for `day` inside the caller's transaction.

    The UPDATE takes the write lock on the day's counter row (or on the whole
    database under SQLite) and keeps it until the caller commits, so two
    bookings can never read the same value. The first booking of a day
    inserts the row; if another writer inserts it first, the unique key on
    date_key rejects ours and we fall back to incrementing theirs.
    """
    try:
        if not _increment(db, day):
            try:
                with db.begin_nested():
                    db.execute(insert(BookingCounter).values(date_key=day, counter=1))
            except IntegrityError:
                _increment(db, day)
        counter = db.execute(
            select(BookingCounter.counter).where(BookingCounter.date_key == day)
        ).scalar_one()
    except SQLAlchemyError as e:
        logger.exception("Counter increment failed for %s", day)
        raise ReferenceGenerationFailure() from e

    if counter > MAX_DAILY_BOOKINGS:
        raise ReferenceGenerationFailure(f"Daily booking limit reached for {day.isoformat()}")
    return format_reference(day, counter)
