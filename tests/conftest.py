import pytest

from hurler.config import Settings
from hurler.storage import Workspace


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / ".hurl")


@pytest.fixture
def workspace(settings):
    return Workspace(settings)
