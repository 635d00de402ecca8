"""
Bulk import of symptom and PSA logs.

All entries of one request are written in a single transaction: either every
valid entry is stored or none is.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import ProfileNotFoundError
from app.db.models.health_log import ErectileLog, PSALog, UrinaryLog
from app.db.models.user import UserProfile
from app.schemas.integrations import LogBatch

logger = logging.getLogger(__name__)


def parse_log_date(value: Any) -> Optional[datetime]:
    """
    Turn an ISO date or datetime string into noon of that calendar day.

    Noon keeps the entry on the same day whatever timezone the app renders
    it in. Returns None for anything that is not a YYYY-MM-DD prefixed string.
    """
    if not isinstance(value, str):
        return None
    parts = value.split("T")[0].split("-")
    if len(parts) != 3:
        return None
    try:
        year, month, day = (int(p) for p in parts)
        return datetime(year, month, day, 12, 0, 0)
    except ValueError:
        return None


def _urinary(uid: str, entry: Dict[str, Any], when: datetime) -> UrinaryLog:
    return UrinaryLog(
        user_uid=uid,
        date=when,
        urgency=bool(entry.get("urgency", False)),
        burning=bool(entry.get("burning", False)),
        physiotherapy_exercise=bool(entry.get("physiotherapyExercise", False)),
        loss_grams=entry.get("lossGrams"),
        pad_changes=entry.get("padChanges"),
        medication_notes=entry.get("medicationNotes"),
    )


def _erectile(uid: str, entry: Dict[str, Any], when: datetime) -> ErectileLog:
    return ErectileLog(
        user_uid=uid,
        date=when,
        erection_quality=entry.get("erectionQuality"),
        medication_used=entry.get("medicationUsed"),
        medication_notes=entry.get("medicationNotes"),
    )


def _psa(uid: str, entry: Dict[str, Any], when: datetime) -> PSALog:
    return PSALog(user_uid=uid, date=when, psa_value=entry.get("psaValue"), notes=entry.get("notes"))


def import_logs(db: Session, user_uid: str, logs: LogBatch) -> int:
    """
    Store every valid log entry for a user.

    Returns:
        Number of entries written (0 means nothing was written)

    Raises:
        ProfileNotFoundError: Unknown user
    """
    if db.query(UserProfile).filter(UserProfile.uid == user_uid).first() is None:
        raise ProfileNotFoundError(user_uid)

    batches: List[tuple] = [
        ("urinary_logs", logs.urinary_logs, _urinary),
        ("erectile_logs", logs.erectile_logs, _erectile),
        ("psa_logs", logs.psa_logs, _psa),
    ]

    rows = []
    for kind, entries, build in batches:
        for entry in entries:
            when = parse_log_date(entry.get("date"))
            if when is None:
                logger.warning(f"Skipped {kind} entry for user {user_uid}: invalid date")
                continue
            rows.append(build(user_uid, entry, when))

    if not rows:
        return 0

    try:
        db.add_all(rows)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Imported {len(rows)} logs for user {user_uid}")
    return len(rows)
