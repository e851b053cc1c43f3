"""Shared test helpers for AIPomodoro."""

import requests

from aipomodoro.timer.engine import TimerEngine, PhaseCompletion


class SignalCollector:
    """Utility to capture pyqtSignal emissions (or plain callbacks) into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class ManualClock:
    """Synthetic monotonic clock advanced by hand."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


def run_out_phase(engine: TimerEngine, start_at: float = 0.0) -> PhaseCompletion:
    """Start the engine and tick it through the whole current phase."""
    engine.start()
    engine.tick(start_at)
    # One unit past the end so float rounding cannot leave a sliver.
    completion = engine.tick(start_at + engine.phase_length / engine_unit(engine) + 1)
    assert completion is not None
    return completion


def engine_unit(engine: TimerEngine) -> float:
    return engine._timestamp_unit


# ── HTTP fakes (stand-ins for requests.Session) ──────────────────────────


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b"", reason="OK"):
        self.status_code = status_code
        self._payload = payload
        self.content = content
        self.reason = reason

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} {self.reason}")


class FakeSession:
    def __init__(self, responses):
        self._responses = list(responses)
        self.calls: list[tuple] = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        result = self._responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

