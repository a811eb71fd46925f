import pytest

from fakes import FakeHost, RecordingRecorder


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def recorder() -> RecordingRecorder:
    return RecordingRecorder()
