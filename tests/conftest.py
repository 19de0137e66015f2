from __future__ import annotations

import pytest

from factories import NOW, FakeStore, RecordingTelemetry, make_child


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def child():
    return make_child()


@pytest.fixture
def telemetry():
    return RecordingTelemetry()


@pytest.fixture
def empty_store(child):
    return FakeStore(children=[child])
