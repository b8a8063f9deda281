import pytest

from qqmusic_login.api_client import MusicuClient

from tests.fakes import FakeSession


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session):
    return MusicuClient(session=session, timeout=5)
