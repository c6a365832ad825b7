import pytest
from sqlalchemy.orm import sessionmaker

from parkwise.database import Base, make_engine
from parkwise.inventory import bootstrap_inventory


@pytest.fixture
def engine(tmp_path):
    # File-backed so that worker threads get their own connections
    engine = make_engine(f"sqlite:///{tmp_path / 'parkwise.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        bootstrap_inventory(session)
        yield session
