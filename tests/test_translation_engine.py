"""Tests for the translation run: planning, the worker and the engine."""

import pytest

from localizer.batch import TranslationUpdate
from localizer.errors import (
    NoSourceLanguageError, NoTargetLanguagesError, NothingToTranslateError,
)
from localizer.project_store import ProjectStore
from localizer.translation_engine import (
    RunProgress, RunState, TranslationEngine, TranslationWorker,
    format_duration, plan_run, translatable_keys, translate_key,
)

from .conftest import FakeOracle, make_project, wait_for


@pytest.fixture
def project():
    return make_project(["en", "tr", "de"], {
        "greeting": {"en": "Hello"},
        "bye": {"en": "Bye", "tr": "Hoşça kal"},
        "done": {"en": "Done", "tr": "Tamam", "de": "Fertig"},
    })


class TestPlanning:
    def test_requires_source(self, project):
        with pytest.raises(NoSourceLanguageError):
            plan_run(project, "", ["tr"])

    def test_requires_targets(self, project):
        with pytest.raises(NoTargetLanguagesError):
            plan_run(project, "en", [])

    def test_nothing_to_translate(self):
        project = make_project(["en", "tr"], {"a": {"en": "A", "tr": "A"}})
        with pytest.raises(NothingToTranslateError):
            plan_run(project, "en", ["tr"])

    def test_empty_project_has_nothing_to_translate(self):
        with pytest.raises(NothingToTranslateError):
            plan_run(make_project(["en", "tr"], {}), "en", ["tr"])

    def test_only_missing_filter(self, project):
        keys = translatable_keys(project.keys, ["tr"], only_missing=True)
        assert [k.key for k in keys] == ["greeting"]
        keys = translatable_keys(project.keys, ["tr", "de"], only_missing=True)
        assert [k.key for k in keys] == ["greeting", "bye"]

    def test_all_keys_without_filter(self, project):
        keys = translatable_keys(project.keys, ["tr"], only_missing=False)
        assert len(keys) == 3


class TestWorker:
    """The worker visits keys x targets in order and emits one batch."""

    def test_nested_order_and_skips(self, project):
        oracle = FakeOracle()
        keys = plan_run(project, "en", ["tr", "de"])
        worker = TranslationWorker(oracle, keys, "en", ["tr", "de"])
        batches = []
        worker.finished.connect(batches.append)
        worker.run()

        assert oracle.calls == [
            ("Hello", "en", "tr"),
            ("Hello", "en", "de"),
            ("Bye", "en", "de"),
        ]
        assert worker.total == 4
        assert worker.completed == 4
        assert batches == [[
            TranslationUpdate("greeting", "tr", "Hello [tr]"),
            TranslationUpdate("greeting", "de", "Hello [de]"),
            TranslationUpdate("bye", "de", "Bye [de]"),
        ]]

    def test_empty_source_skips_without_calls(self):
        project = make_project(["en", "tr", "de"], {"blank": {"en": ""}})
        oracle = FakeOracle()
        progress = []
        worker = TranslationWorker(oracle, plan_run(project, "en", ["tr", "de"]), "en", ["tr", "de"])
        worker.progress.connect(lambda done, total, key: progress.append((done, total)))
        worker.run()

        assert oracle.calls == []
        assert worker.completed == 2
        assert progress == [(2, 2)]
        assert worker.updates == []

    def test_non_string_source_skipped(self):
        project = make_project(["en", "tr"], {"count": {"en": 3}})
        oracle = FakeOracle()
        worker = TranslationWorker(oracle, project.keys, "en", ["tr"])
        worker.run()
        assert oracle.calls == []
        assert worker.completed == 1

    def test_failure_is_counted_and_omitted(self, project):
        oracle = FakeOracle(fail_on={"de"})
        errors = []
        worker = TranslationWorker(oracle, plan_run(project, "en", ["tr", "de"]), "en", ["tr", "de"])
        worker.error.connect(lambda key, code, msg: errors.append((key, code)))
        worker.run()

        assert worker.completed == worker.total == 4
        assert errors == [("greeting", "de"), ("bye", "de")]
        assert worker.updates == [TranslationUpdate("greeting", "tr", "Hello [tr]")]

    def test_retranslate_all(self, project):
        oracle = FakeOracle()
        worker = TranslationWorker(oracle, project.keys, "en", ["tr"], only_missing=False)
        worker.run()
        assert len(oracle.calls) == 3

    def test_unexpected_client_error_does_not_end_run(self, project):
        class BrokenOracle(FakeOracle):
            def translate(self, text, source, target):
                result = super().translate(text, source, target)
                if len(self.calls) == 1:
                    raise RuntimeError("boom")
                return result

        oracle = BrokenOracle()
        errors = []
        batches = []
        worker = TranslationWorker(oracle, plan_run(project, "en", ["tr", "de"]), "en", ["tr", "de"])
        worker.error.connect(lambda key, code, msg: errors.append((key, code, msg)))
        worker.finished.connect(batches.append)
        worker.run()

        assert len(oracle.calls) == 3
        assert errors == [("greeting", "tr", "boom")]
        assert worker.completed == worker.total == 4
        assert batches == [[
            TranslationUpdate("greeting", "de", "Hello [de]"),
            TranslationUpdate("bye", "de", "Bye [de]"),
        ]]

    def test_cancel_stops_at_pair_boundary(self, project):
        class CancellingOracle(FakeOracle):
            def translate(self, text, source, target):
                result = super().translate(text, source, target)
                worker.cancel()
                return result

        oracle = CancellingOracle()
        worker = TranslationWorker(oracle, plan_run(project, "en", ["tr", "de"]), "en", ["tr", "de"])
        worker.run()

        # The in-flight call finishes, nothing after it starts
        assert len(oracle.calls) == 1
        assert worker.cancelled
        assert worker.completed == 1


class TestEngine:
    def test_run_applies_one_batch(self, project):
        store = ProjectStore(data=project)
        applied = []
        original = store.apply_batch
        store.apply_batch = lambda updates: applied.append(list(updates)) or original(updates)

        engine = TranslationEngine(FakeOracle(), store)
        finished = []
        engine.finished.connect(finished.append)
        count = engine.run("en", ["tr", "de"])

        assert count == 3
        assert len(applied) == 1
        assert finished == [3]
        assert engine.state is RunState.COMPLETED
        assert store.data.get_key("greeting").translations == {
            "en": "Hello", "tr": "Hello [tr]", "de": "Hello [de]",
        }
        rates = {l.code: l.completion_rate for l in store.data.languages}
        assert rates["de"] == pytest.approx(100.0)

    def test_validation_before_any_call(self, project):
        store = ProjectStore(data=project)
        oracle = FakeOracle()
        engine = TranslationEngine(oracle, store)
        with pytest.raises(NoTargetLanguagesError):
            engine.run("en", [])
        assert oracle.calls == []
        assert engine.state is RunState.IDLE

    def test_cancelled_run_applies_nothing(self, project):
        store = ProjectStore(data=project)
        engine = TranslationEngine(None, store)

        class CancellingOracle(FakeOracle):
            def translate(self, text, source, target):
                engine.cancel()
                return super().translate(text, source, target)

        engine.client = CancellingOracle()
        cancelled = []
        engine.cancelled.connect(lambda: cancelled.append(True))
        assert engine.run("en", ["tr", "de"]) == 0
        assert cancelled == [True]
        assert engine.state is RunState.IDLE
        assert store.data is project

    def test_unexpected_error_leaves_engine_usable(self, project):
        class FlakyOracle(FakeOracle):
            def translate(self, text, source, target):
                result = super().translate(text, source, target)
                if len(self.calls) == 1:
                    raise RuntimeError("boom")
                return result

        store = ProjectStore(data=project)
        engine = TranslationEngine(FlakyOracle(), store)
        assert engine.run("en", ["tr", "de"]) == 2
        assert engine.state is RunState.COMPLETED
        assert store.data.get_key("greeting").translations == {"en": "Hello", "de": "Hello [de]"}

        # A second run still starts and fills the pair that failed
        engine.client = FakeOracle()
        assert engine.run("en", ["tr"]) == 1
        assert store.data.get_key("greeting").translations["tr"] == "Hello [tr]"

    def test_start_runs_on_thread(self, project, qt_app):
        store = ProjectStore(data=project)
        applied = []
        original = store.apply_batch
        store.apply_batch = lambda updates: applied.append(list(updates)) or original(updates)

        engine = TranslationEngine(FakeOracle(), store)
        counts = []
        engine.finished.connect(counts.append)
        assert engine.start("en", ["tr", "de"]) == 4
        assert engine.is_running

        assert wait_for(engine.finished)
        assert counts == [3]
        assert len(applied) == 1
        assert engine.state is RunState.COMPLETED
        assert store.data.get_key("bye").translations["de"] == "Bye [de]"

    def test_start_refused_while_running(self, project, qt_app):
        engine = TranslationEngine(FakeOracle(), ProjectStore(data=project))
        engine.start("en", ["tr", "de"])
        assert engine.start("en", ["tr", "de"]) == 0
        assert wait_for(engine.finished)

    def test_progress_snapshot(self, project):
        store = ProjectStore(data=project)
        engine = TranslationEngine(FakeOracle(), store)
        assert engine.progress_snapshot() == RunProgress()
        engine.run("en", ["tr", "de"])
        snapshot = engine.progress_snapshot()
        assert snapshot.completed == snapshot.total == 4
        assert snapshot.fraction == 1.0


class TestProgress:
    def test_estimate_undefined_before_first_pair(self):
        progress = RunProgress(completed=0, total=10, elapsed=5)
        assert progress.estimated_total == 0
        assert progress.remaining == 0

    def test_linear_projection(self):
        progress = RunProgress(completed=5, total=20, elapsed=10)
        assert progress.estimated_total == pytest.approx(40)
        assert progress.remaining == pytest.approx(30)

    @pytest.mark.parametrize("seconds, text", [
        (42, "42s"), (185, "3m 5s"), (7800, "2h 10m"),
    ])
    def test_format_duration(self, seconds, text):
        assert format_duration(seconds) == text


class TestTranslateKey:
    def test_fills_missing_languages(self, project):
        store = ProjectStore(data=project)
        oracle = FakeOracle()
        assert translate_key(store, oracle, "bye", "en") == 1
        assert oracle.calls == [("Bye", "en", "de")]
        assert store.data.get_key("bye").translations["de"] == "Bye [de]"

    def test_unexpected_error_skips_language(self, project):
        class BrokenOracle(FakeOracle):
            def translate(self, text, source, target):
                if target == "tr":
                    raise KeyError(target)
                return super().translate(text, source, target)

        store = ProjectStore(data=project)
        assert translate_key(store, BrokenOracle(), "greeting", "en") == 1
        assert store.data.get_key("greeting").translations == {"en": "Hello", "de": "Hello [de]"}

    def test_no_source_text(self, project):
        store = ProjectStore(data=make_project(["en", "tr"], {"a": {"tr": "x"}}))
        with pytest.raises(NothingToTranslateError):
            translate_key(store, FakeOracle(), "a", "en")

    def test_already_complete(self, project):
        store = ProjectStore(data=project)
        with pytest.raises(NothingToTranslateError):
            translate_key(store, FakeOracle(), "done", "en")
