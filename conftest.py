import pytest

from story_engine.cache import MemoryContextCache
from story_engine.storage import Storage


@pytest.fixture
def storage(tmp_path):
    """Fresh file storage under a per-test directory."""
    return Storage(tmp_path / "data")


@pytest.fixture
def cache():
    c = MemoryContextCache().init()
    yield c
    c.shutdown()


@pytest.fixture
def alice_adventure(storage):
    """Adventure owned by user "u1" whose character is Alice, 25, brave and curious."""
    template = storage.create_template(
        "u1",
        "Alice",
        age=25,
        personality={"personality.traits": ["Brave", "Curious"]},
    )
    return storage.start_adventure("u1", template.id, "Down the Rabbit Hole")
