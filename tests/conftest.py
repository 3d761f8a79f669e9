import itertools

import pytest


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"n{next(counter)}"