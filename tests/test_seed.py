from __future__ import annotations

from datetime import date

from sqlalchemy import func, select

from core.models import Athlete, DailyMetric, SimulationResult, Workout
from db.seed import DEMO_ATHLETES, seed

TODAY = date(2026, 3, 25)


def _count(s, model) -> int:
    return s.execute(select(func.count()).select_from(model)).scalar_one()


def test_seed_populates_demo_data(db):
    seed(TODAY)
    with db.session_scope() as s:
        assert _count(s, Athlete) == len(DEMO_ATHLETES)
        assert _count(s, DailyMetric) == 14 * len(DEMO_ATHLETES)
        assert _count(s, SimulationResult) == 6 * len(DEMO_ATHLETES)
        future = s.execute(
            select(func.count()).select_from(Workout).where(Workout.day >= TODAY, Workout.completed.is_(True))
        ).scalar_one()
    assert future == 0


def test_seed_skips_when_data_exists(db):
    seed(TODAY)
    seed(TODAY)
    with db.session_scope() as s:
        assert _count(s, Athlete) == len(DEMO_ATHLETES)
