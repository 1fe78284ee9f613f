import pytest

from sll.schemas.validator import Validator

from sc_fixtures import FakeSCClient


@pytest.fixture
def validator():
    return Validator()


@pytest.fixture
def fake_sc():
    sc = FakeSCClient()
    yield sc
    sc.close()
