import os
import tempfile

# Must run before the app package reads its settings
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "0")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="ndvi-uploads-"))

import pytest

from fakes import FakeAccountRepo, FakeImageRepo, FakeStorage


@pytest.fixture
def accounts():
    return FakeAccountRepo()


@pytest.fixture
def images():
    return FakeImageRepo()


@pytest.fixture
def storage():
    return FakeStorage()
