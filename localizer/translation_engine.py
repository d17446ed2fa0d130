"""Translation engine — runs machine translation over the key table.

A run walks every qualifying key (table order) times every target
language (selection order), calls the translation client one pair at a
time and collects the results.  The collected results reach the store in
one ``apply_batch`` call when the run ends.

Cancellation is cooperative: ``cancel()`` sets a flag that is checked
between pairs.  A request already sent to the client is never
interrupted; the run stops after it returns.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum

import requests

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from . import is_translated
from .batch import TranslationUpdate
from .errors import (
    NoSourceLanguageError, NoTargetLanguagesError, NothingToTranslateError,
)

log = logging.getLogger(__name__)

# Per-pair failures that are logged and skipped instead of ending the run
PAIR_ERRORS = (ConnectionError, requests.RequestException, ValueError, OSError)


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass
class RunProgress:
    """Snapshot of a run's progress and timing, in seconds."""
    completed: int = 0
    total: int = 0
    elapsed: float = 0.0

    @property
    def fraction(self) -> float:
        return self.completed / self.total if self.total else 0.0

    @property
    def estimated_total(self) -> float:
        """Linear projection of the run's duration; 0 until a pair is done."""
        if not self.completed or not self.total:
            return 0.0
        return self.elapsed / self.fraction

    @property
    def remaining(self) -> float:
        return max(0.0, self.estimated_total - self.elapsed)


def format_duration(seconds: float) -> str:
    """Format seconds as ``42s``, ``3m 5s`` or ``2h 10m``."""
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"


def translatable_keys(keys: list, targets: list, only_missing: bool = True) -> list:
    """Return the keys a run should visit.

    With ``only_missing`` a key qualifies when at least one target language
    has no value for it; otherwise every key qualifies.
    """
    if not only_missing:
        return list(keys)
    return [k for k in keys if k.missing_languages(targets)]


def plan_run(data, source: str, targets: list, only_missing: bool = True) -> list:
    """Validate run settings against a project snapshot.

    Returns:
        The qualifying keys, in table order.

    Raises:
        NoSourceLanguageError, NoTargetLanguagesError, NothingToTranslateError
    """
    if not source:
        raise NoSourceLanguageError()
    if not targets:
        raise NoTargetLanguagesError()
    keys = translatable_keys(data.keys, targets, only_missing)
    if not keys:
        raise NothingToTranslateError()
    return keys


class TranslationWorker(QObject):
    """Worker that translates one run's (key, language) pairs in order."""

    progress = pyqtSignal(int, int, str)        # completed, total, key
    entry_done = pyqtSignal(str, str, object)   # key, language code, translation
    error = pyqtSignal(str, str, str)           # key, language code, message
    finished = pyqtSignal(object)               # list[TranslationUpdate]

    def __init__(self, client, keys: list, source: str, targets: list,
                 only_missing: bool = True, delay: float = 0.0):
        super().__init__()
        self.client = client
        self.keys = keys
        self.source = source
        self.targets = list(targets)
        self.only_missing = only_missing
        self.delay = delay
        self.total = len(keys) * len(self.targets)
        self.completed = 0
        self.calls = 0
        self.updates: list[TranslationUpdate] = []
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        self._cancelled = True

    def _advance(self, count: int, key: str):
        self.completed += count
        self.progress.emit(self.completed, self.total, key)

    def _translate_pair(self, key: str, text: str, code: str):
        """Call the client for one pair.  Returns the translation or None."""
        try:
            return self.client.translate(text, self.source, code)
        except PAIR_ERRORS as e:
            log.warning("Translation failed for %s -> %s: %s", key, code, e)
            self.error.emit(key, code, str(e))
        except Exception as e:
            # Injected clients may raise anything; a failed pair never ends the run
            log.exception("Unexpected error translating %s -> %s", key, code)
            self.error.emit(key, code, str(e) or type(e).__name__)
        return None

    def run(self):
        """Process every pair, then emit the collected updates once."""
        try:
            for entry in self.keys:
                if self._cancelled:
                    break

                source_text = entry.value(self.source)
                if not is_translated(source_text) or not isinstance(source_text, str):
                    log.debug("Skipping %s: no %s text to translate from", entry.key, self.source)
                    self._advance(len(self.targets), entry.key)
                    continue

                for code in self.targets:
                    if self._cancelled:
                        break
                    if self.only_missing and entry.has_translation(code):
                        self._advance(1, entry.key)
                        continue

                    if self.delay and self.calls:
                        time.sleep(self.delay)
                    self.calls += 1
                    result = self._translate_pair(entry.key, source_text, code)
                    if result is not None:
                        self.updates.append(TranslationUpdate(entry.key, code, result))
                        self.entry_done.emit(entry.key, code, result)
                    self._advance(1, entry.key)
        finally:
            self.finished.emit(self.updates)


class TranslationEngine(QObject):
    """Runs one translation at a time and applies its results to a store.

    Lifecycle: IDLE -> RUNNING -> COMPLETED, or back to IDLE when the run
    was cancelled (a cancelled run applies nothing).  The keys are chosen
    from the store's snapshot at start; the batch is applied to whatever
    the live snapshot is at the end, so it overwrites manual edits made to
    the same cells while the run was going.
    """

    progress = pyqtSignal(int, int, str)    # completed, total, key
    entry_done = pyqtSignal(str, str, object)
    error = pyqtSignal(str, str, str)
    finished = pyqtSignal(int)              # number of updates applied
    cancelled = pyqtSignal()

    def __init__(self, client, store, parent=None):
        super().__init__(parent)
        self.client = client
        self.store = store
        self.request_delay = 0.0  # seconds between client calls
        self._state = RunState.IDLE
        self._thread = None
        self._worker = None
        self._start_time = 0.0
        self._end_time = 0.0

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is RunState.RUNNING

    def progress_snapshot(self) -> RunProgress:
        """Return completed/total pairs and timing for the current run."""
        if self._worker is None:
            return RunProgress()
        end = self._end_time if self._end_time else time.monotonic()
        return RunProgress(
            completed=self._worker.completed,
            total=self._worker.total,
            elapsed=end - self._start_time,
        )

    def _prepare(self, source: str, targets: list, only_missing: bool) -> TranslationWorker:
        keys = plan_run(self.store.data, source, targets, only_missing)
        worker = TranslationWorker(
            self.client, keys, source, targets,
            only_missing=only_missing, delay=self.request_delay)
        worker.progress.connect(self.progress.emit)
        worker.entry_done.connect(self.entry_done.emit)
        worker.error.connect(self.error.emit)
        worker.finished.connect(self._on_worker_finished)
        self._worker = worker
        self._state = RunState.RUNNING
        self._start_time = time.monotonic()
        self._end_time = 0.0
        log.info("Translation run started: %s -> %s, %d key(s), %d pair(s)",
                 source, ", ".join(targets), len(keys), worker.total)
        return worker

    def start(self, source: str, targets: list, only_missing: bool = True) -> int:
        """Validate and start a run on a background thread.

        Returns the number of pairs in the run.  Validation errors are
        raised here, before any client call.
        """
        if self.is_running:
            return 0
        worker = self._prepare(source, targets, only_missing)
        thread = QThread()
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        self._thread = thread
        thread.start()
        return worker.total

    def run(self, source: str, targets: list, only_missing: bool = True) -> int:
        """Run synchronously on the calling thread.

        Returns the number of updates applied.
        """
        if self.is_running:
            return 0
        worker = self._prepare(source, targets, only_missing)
        worker.run()
        return 0 if worker.cancelled else len(worker.updates)

    def cancel(self):
        """Ask the running worker to stop at the next pair boundary."""
        if self._worker is not None and self.is_running:
            self._worker.cancel()

    def _on_worker_finished(self, updates: list):
        self._end_time = time.monotonic()
        if self._thread is not None:
            self._thread.quit()
            self._thread.wait()
            self._thread = None

        if self._worker.cancelled:
            log.info("Translation run cancelled after %d/%d pair(s); nothing applied",
                     self._worker.completed, self._worker.total)
            self._state = RunState.IDLE
            self.cancelled.emit()
            return

        if updates:
            self.store.apply_batch(updates)
        self._state = RunState.COMPLETED
        log.info("Translation run finished: %d/%d pair(s) translated in %s",
                 len(updates), self._worker.total,
                 format_duration(self._end_time - self._start_time))
        self.finished.emit(len(updates))


def translate_key(store, client, key: str, source: str) -> int:
    """Fill every missing language of one key from its ``source`` value.

    All results are applied to the store in one batch.

    Returns:
        The number of languages filled.

    Raises:
        NothingToTranslateError: the key has no usable source text, or no
            language is missing.
    """
    entry = store.data.get_key(key)
    if entry is None:
        raise NothingToTranslateError(f'Key "{key}" does not exist')
    source_text = entry.value(source)
    if not is_translated(source_text) or not isinstance(source_text, str):
        raise NothingToTranslateError(f'Key "{key}" has no {source} text')

    targets = [c for c in entry.missing_languages(store.data.language_codes) if c != source]
    if not targets:
        raise NothingToTranslateError(f'Key "{key}" is already translated')

    updates = []
    for code in targets:
        try:
            updates.append(TranslationUpdate(key, code, client.translate(source_text, source, code)))
        except PAIR_ERRORS as e:
            log.warning("Translation failed for %s -> %s: %s", key, code, e)
        except Exception:
            log.exception("Unexpected error translating %s -> %s", key, code)
    if updates:
        store.apply_batch(updates)
    return len(updates)
