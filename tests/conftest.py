import os

os.environ.setdefault("TABLEPOS_DATABASE_URL", "sqlite://")
os.environ.setdefault("TABLEPOS_SEED", "0")
os.environ["TABLEPOS_TIMEZONE"] = "Asia/Ho_Chi_Minh"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tablepos import crud
from tablepos.db import Base, get_db, make_engine
from tablepos.main import app


@pytest.fixture()
def engine():
    # one shared in-memory connection per test
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def collection(db):
    return crud.create_menu_collection(db, {"name": "Main Menu", "description": None})


@pytest.fixture()
def menu(db, collection):
    """Two dishes priced 10000 and 20000."""
    rice = crud.create_menu_item(
        db,
        {"name": "Fried Rice", "price": 10000, "category": "Food", "menu_collection_id": collection.id},
    )
    noodles = crud.create_menu_item(
        db,
        {"name": "Beef Noodles", "price": 20000, "category": "Food", "menu_collection_id": collection.id},
    )
    return rice, noodles


@pytest.fixture()
def table(db):
    return crud.create_table(db, "T1", "regular")

