import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from walkplanner.api.deps import get_db
from walkplanner.db.database import enable_sqlite_savepoints
from walkplanner.db.models import Assignments, Base, DogRoutines, Dogs, Owners, WeekOverrides
from walkplanner.main import app
from walkplanner.services.planning.slots import default_templates
from walkplanner.services.planning.types import (
    Assignment,
    DogRoutine,
    RoutineTier,
    TimePreference,
    WeekOverride,
    WeeklyView,
)
from walkplanner.services.planning.weekly_view import build_weekly_view


def get_test_week() -> tuple[int, int]:
    # fixed ISO week for deterministic tests; Monday is 2025-03-03
    return 2025, 10


def make_view(
    overrides: list[WeekOverride] = None,
    assignments: list[Assignment] = None,
    year: int = 2025,
    week: int = 10,
) -> WeeklyView:
    return build_weekly_view(default_templates(), overrides or [], assignments or [], year, week)


def booked(slot_id: str, dog_ids: list[int], year: int = 2025, week: int = 10) -> list[Assignment]:
    return [Assignment(dog_id=d, slot_id=slot_id, year=year, week=week) for d in dog_ids]


def make_routine(dog_id: int = 1, tier: RoutineTier = RoutineTier.R2, **kwargs) -> DogRoutine:
    kwargs.setdefault("time_preference", TimePreference.INDIFFERENT)
    return DogRoutine(dog_id=dog_id, tier=tier, **kwargs)


@pytest.fixture
def empty_view() -> WeeklyView:
    # all 15 slots open, capacity 4, no sector
    return make_view()


# Database fixtures

@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def add_dog(db, name: str = "Rex", address: str = None) -> int:
    owner = Owners(first_name="Ana", last_name=name + "son", address=address)
    db.add(owner)
    db.flush()
    dog = Dogs(name=name, owner_id=owner.id)
    db.add(dog)
    db.commit()
    return dog.id


def add_dogs(db, count: int) -> list[int]:
    return [add_dog(db, f"Dog{i}") for i in range(1, count + 1)]


def add_routine(db, dog_id: int, tier: RoutineTier = RoutineTier.R2, sector: str = None, **kwargs) -> None:
    db.add(DogRoutines(dog_id=dog_id, tier=tier, sector=sector, **kwargs))
    db.commit()


def add_assignment(db, dog_id: int, slot_id: str, year: int = 2025, week: int = 10, completed: bool = False) -> int:
    row = Assignments(dog_id=dog_id, slot_id=slot_id, year=year, week=week, is_completed=completed)
    db.add(row)
    db.commit()
    return row.id


def add_override(db, slot_id: str, year: int = 2025, week: int = 10, **kwargs) -> None:
    db.add(WeekOverrides(slot_id=slot_id, year=year, week=week, **kwargs))
    db.commit()


@pytest.fixture
def planning_db(db):
    # database with the 15 slot templates in place
    from walkplanner.services.planning.booking import initialize_slot_templates
    initialize_slot_templates(db)
    return db
