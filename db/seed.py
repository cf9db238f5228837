"""Demo data seeder.

Creates a handful of athletes with four weeks of workouts and diary
check-ins, then recomputes their daily metrics and stores a sample scenario.
Values are generated from fixed patterns so every run produces the same data.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta

from alembic import command
from alembic.config import Config
from sqlalchemy import select

from core.config import get_settings
from core.db import session_scope
from core.logging_config import setup_logging
from core.models import Athlete, DiaryEntry, Workout
from core.services.daily_metrics import recompute_daily_metric
from core.services.scenarios import create_scenario, run_scenario
from core.services.simulation import SCENARIO_PRESETS

logger = logging.getLogger(__name__)

DEMO_ATHLETES = [
    ("Maya", "Lindqvist", "maya@example.com", "competitive", "running"),
    ("Tom", "Okafor", "tom@example.com", "busy_pro", "cycling"),
    ("Ines", "Duarte", "ines@example.com", "comeback", "triathlon"),
]

# (weekday offset, title, intensity, duration_min, tss)
WEEK_TEMPLATE = [
    (0, "Easy Run", "easy", 45, 40.0),
    (1, "Intervals 6x3min", "hard", 60, 85.0),
    (3, "Tempo", "moderate", 50, 60.0),
    (5, "Long Run", "moderate", 95, 95.0),
    (6, "Recovery Jog", "easy", 30, 25.0),
]


def run_migrations() -> None:
    command.upgrade(Config("alembic.ini"), "head")


def _seed_athlete(s, first: str, last: str, email: str, mode: str, sport: str, today: date, skip_every: int) -> int:
    athlete = Athlete(first_name=first, last_name=last, email=email, identity_mode=mode, primary_sport=sport)
    s.add(athlete)
    s.flush()

    start = today - timedelta(days=today.weekday()) - timedelta(weeks=3)
    counter = 0
    for week in range(4):
        week_start = start + timedelta(weeks=week)
        for offset, title, intensity, duration, tss in WEEK_TEMPLATE:
            day = week_start + timedelta(days=offset)
            counter += 1
            done = day < today and counter % skip_every != 0
            s.add(
                Workout(
                    athlete_id=athlete.id,
                    day=day,
                    title=title,
                    discipline="intervals" if "Intervals" in title else "run",
                    planned=True,
                    completed=done,
                    duration_min=duration,
                    tss=tss * (1 + 0.05 * week),
                    intensity=intensity,
                )
            )

    for i in range(28):
        day = today - timedelta(days=27 - i)
        wave = (i + skip_every) % 5
        s.add(
            DiaryEntry(
                athlete_id=athlete.id,
                day=day,
                mood=2 + wave % 3,
                energy=3 + (wave % 2),
                sleep_hours=6.5 + 0.25 * wave,
                sleep_quality=2 + wave % 3,
                stress=4 - wave % 3,
                soreness=1 + wave % 4,
                notes="Felt fine" if wave else "Heavy legs",
            )
        )
    s.flush()
    return athlete.id


def seed(today: date | None = None) -> None:
    today = today or date.today()
    with session_scope() as s:
        if s.execute(select(Athlete.id).limit(1)).first():
            logger.info("seed_skipped", extra={"ctx_reason": "athletes already present"})
            return

        athlete_ids = [
            _seed_athlete(s, first, last, email, mode, sport, today, skip_every)
            for (first, last, email, mode, sport), skip_every in zip(DEMO_ATHLETES, (9, 4, 3))
        ]

        for athlete_id in athlete_ids:
            for back in range(13, -1, -1):
                recompute_daily_metric(s, athlete_id, today - timedelta(days=back))
            preset = SCENARIO_PRESETS["balanced_progress"]
            scenario = create_scenario(s, athlete_id, preset.name, 6, preset.params)
            run_scenario(s, athlete_id, scenario.id, today)

    logger.info("seed_completed", extra={"ctx_athletes": len(athlete_ids)})


if __name__ == "__main__":
    settings = get_settings()
    setup_logging(settings.log_level, settings.app_env)
    run_migrations()
    seed()
