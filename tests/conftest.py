"""Shared fixtures for the Localizer tests."""

import pytest

from localizer.errors import OracleError
from localizer.languages import get_language_by_code
from localizer.project_model import ProjectData, TranslationKey, with_completion_rates
from localizer.project_store import ProjectShelf, ProjectStore
from localizer.value_types import infer_type


def make_project(languages, rows) -> ProjectData:
    """Build a project from codes and ``{key: {code: value}}``."""
    langs = [get_language_by_code(c) for c in languages]
    keys = [TranslationKey(key=k, translations=dict(t), value_type=infer_type(t, languages))
            for k, t in rows.items()]
    return ProjectData(languages=with_completion_rates(langs, keys), keys=keys)


class FakeOracle:
    """Stand-in translation client that records every call."""

    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)

    def translate(self, text, source, target):
        self.calls.append((text, source, target))
        if target in self.fail_on or text in self.fail_on:
            raise OracleError(f"cannot translate {text!r} to {target}")
        return f"{text} [{target}]"


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def shelf(tmp_path):
    return ProjectShelf(str(tmp_path / "project.json"))


@pytest.fixture
def store(shelf):
    return ProjectStore(shelf)


@pytest.fixture(scope="session")
def qt_app():
    """One QCoreApplication for every test that needs an event loop."""
    from PyQt6.QtCore import QCoreApplication
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


def wait_for(signal, timeout_ms: int = 5000) -> bool:
    """Spin an event loop until ``signal`` fires; False on timeout."""
    from PyQt6.QtCore import QEventLoop, QTimer
    loop = QEventLoop()
    fired = []
    signal.connect(lambda *args: (fired.append(args), loop.quit()))
    QTimer.singleShot(timeout_ms, loop.quit)
    loop.exec()
    return bool(fired)
