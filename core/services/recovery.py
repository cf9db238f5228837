from __future__ import annotations

import logging

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import EngineValidationError, PersistenceError
from core.models import Workout
from core.services.burnout import RecoveryMicrocycle
from core.services.daily_metrics import require_athlete

logger = logging.getLogger(__name__)


def apply_recovery_microcycle(s: Session, command: RecoveryMicrocycle) -> int:
    """Replace the week's open planned workouts with the recovery template.

    Completed workouts are kept. Returns the number of workouts replaced.
    """
    if not command.confirm_overwrite:
        raise EngineValidationError("recovery microcycle replaces the week's plan; confirm_overwrite must be true")
    require_athlete(s, command.athlete_id)

    try:
        replaced = s.execute(
            delete(Workout).where(
                Workout.athlete_id == command.athlete_id,
                Workout.day >= command.week_start,
                Workout.day <= command.week_end,
                Workout.planned.is_(True),
                Workout.completed.is_(False),
            )
        ).rowcount
        for session in command.plan():
            s.add(
                Workout(
                    athlete_id=command.athlete_id,
                    day=session.day,
                    title=session.title,
                    discipline=session.discipline,
                    planned=True,
                    completed=False,
                    duration_min=session.duration_min,
                    tss=session.tss,
                    intensity=session.intensity,
                )
            )
        s.flush()
    except SQLAlchemyError as exc:
        logger.exception("recovery_microcycle_failed", extra={"ctx_athlete_id": command.athlete_id})
        raise PersistenceError("failed to apply recovery microcycle") from exc

    logger.info(
        "recovery_microcycle_applied",
        extra={
            "ctx_athlete_id": command.athlete_id,
            "ctx_week_start": command.week_start.isoformat(),
            "ctx_replaced": replaced,
        },
    )
    return replaced
