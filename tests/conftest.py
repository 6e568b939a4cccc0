from pathlib import Path

import pytest

from database import SQLiteGraphStore
from factories import TODAY
from service import FamilyTreeService


@pytest.fixture
def store(tmp_path: Path):
    store = SQLiteGraphStore(tmp_path / "tree.db")
    yield store
    store.close()


@pytest.fixture
def service(store) -> FamilyTreeService:
    return FamilyTreeService(store, today=TODAY)
