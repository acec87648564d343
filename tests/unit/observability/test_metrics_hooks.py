import logging

import pytest

from sql_doclint.observability import LoggingMetricsHook, NoOpMetricsHook, names
from sql_doclint.pipeline import lint_document


class TestNoOpMetricsHook:
    def test_accepts_all_calls(self) -> None:
        hook = NoOpMetricsHook()

        hook.record_latency(names.EXTRACTION_DURATION, 1.5)
        hook.increment(names.SNIPPETS_EXTRACTED, 3, labels={"a": "b"})


class TestLoggingMetricsHook:
    def test_sums_counters_per_label_set(self) -> None:
        hook = LoggingMetricsHook()

        hook.increment(names.SNIPPETS_EXTRACTED, 2)
        hook.increment(names.SNIPPETS_EXTRACTED, 3)
        hook.increment(names.VALIDATION_RESULTS_TOTAL, labels={"outcome": "valid"})
        hook.increment(names.VALIDATION_RESULTS_TOTAL, labels={"outcome": "invalid"})

        assert hook.counters[names.SNIPPETS_EXTRACTED] == 5
        assert hook.counters["validation_results_total{outcome=valid}"] == 1
        assert hook.counters["validation_results_total{outcome=invalid}"] == 1

    def test_labels_are_sorted(self) -> None:
        hook = LoggingMetricsHook()

        hook.increment("hits", labels={"z": "1", "a": "2"})

        assert list(hook.counters) == ["hits{a=2,z=1}"]

    def test_sums_latencies(self) -> None:
        hook = LoggingMetricsHook()

        hook.record_latency(names.VALIDATION_DURATION, 1.25)
        hook.record_latency(names.VALIDATION_DURATION, 0.75)

        assert hook.latencies_ms[names.VALIDATION_DURATION] == pytest.approx(2.0)
        assert hook.summary() == "validation_duration=2.00ms"

    def test_logs_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        hook = LoggingMetricsHook()

        with caplog.at_level(logging.DEBUG, logger="sql_doclint.observability"):
            hook.increment(names.SNIPPETS_SELECTED, 4)

        assert "metric snippets_selected += 4" in caplog.text

    def test_collects_pipeline_metrics(self) -> None:
        hook = LoggingMetricsHook()

        lint_document("```sql\nSELECT 1;\n```\n", metrics_hook=hook)

        assert hook.counters[names.SNIPPETS_EXTRACTED] == 1
        assert hook.counters[names.SNIPPETS_SELECTED] == 1
        assert names.EXTRACTION_DURATION in hook.latencies_ms
        assert "snippets_selected=1" in hook.summary()
