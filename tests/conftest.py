from __future__ import annotations

import pytest


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh on-disk SQLite database with the engine schema."""
    import core.db as db_mod

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'engine.db'}")
    db_mod.reset_engine()
    db_mod.init_db()
    yield db_mod
    db_mod.reset_engine()


@pytest.fixture
def athlete_id(db):
    from core.models import Athlete

    with db.session_scope() as s:
        athlete = Athlete(first_name="Demo", last_name="Runner", email="demo.runner@example.com")
        s.add(athlete)
        s.flush()
        return athlete.id
