import pytest

from tapegrad import Arena, destroy_instance, use_arena


@pytest.fixture(autouse=True)
def fresh_default_arena():
    # every test starts and ends without a default arena
    destroy_instance()
    yield
    destroy_instance()


@pytest.fixture
def arena():
    a = Arena()
    with use_arena(a):
        yield a
    a.destroy()
