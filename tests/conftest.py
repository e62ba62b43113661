import os

os.environ.setdefault("MPLBACKEND", "Agg")

import numpy as np
import pytest

from agents.need_state import NEED_ORDER


class ScriptedRng:
    """Replays fixed random() and integers() draws so epsilon-greedy is predictable."""

    def __init__(self, randoms=(), ints=()):
        self.randoms = list(randoms)
        self.ints = list(ints)
        self.calls = []

    def random(self):
        self.calls.append("random")
        return self.randoms.pop(0)

    def integers(self, n):
        self.calls.append(("integers", n))
        return self.ints.pop(0)


class FakeNeeds:
    def __init__(self, value=60.0, **overrides):
        self.values = {n: float(value) for n in NEED_ORDER}
        for need in NEED_ORDER:
            if need.name.lower() in overrides:
                self.values[need] = float(overrides[need.name.lower()])
        self.is_alive = True

    def value(self, need):
        return self.values[need]

    def as_dict(self):
        return dict(self.values)

    def set(self, need, value):
        self.values[need] = float(value)


class FakeExecutor:
    """Records requested actions; the test decides when (and how) they finish."""

    def __init__(self, actions=None):
        self.actions = actions
        self.requests = []
        self.abandoned = 0

    def execute(self, action, on_done):
        self.requests.append((action, on_done))

    def finish(self, ok=True):
        _, on_done = self.requests[-1]
        on_done(ok)

    def abandon(self):
        self.abandoned += 1

    def available_actions(self):
        return self.actions


class RecordingSink:
    def __init__(self):
        self.decisions = []
        self.deaths = []
        self.transitions = []

    def log_decision(self, record):
        self.decisions.append(record)

    def log_death(self, record):
        self.deaths.append(record)

    def log_transition(self, record):
        self.transitions.append(record)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def fake_needs():
    return FakeNeeds()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def table_dir(tmp_path):
    path = tmp_path / "qlearning"
    path.mkdir()
    return path


@pytest.fixture
def log_dir(tmp_path):
    path = tmp_path / "logs"
    path.mkdir()
    return path


@pytest.fixture
def scripted_rng():
    return ScriptedRng


@pytest.fixture
def make_needs():
    return FakeNeeds


@pytest.fixture
def make_executor():
    return FakeExecutor
