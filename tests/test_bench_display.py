"""Tests for clibench.bench.display — report table and run summary."""

from __future__ import annotations

import unittest

from bench_test_helpers import make_result, make_run

from clibench.bench.display import format_run_summary, render_table, report_columns
from clibench.bench.results import RunReport, merge_report


class TestReportColumns(unittest.TestCase):
    """Tests for the version column order."""

    def test_first_seen_order(self) -> None:
        report = {"a": {"1.0": 1, "1.1": 2}, "b": {"0.9": 3, "1.0": 4}}
        self.assertEqual(report_columns(report), ["1.0", "1.1", "0.9"])

    def test_empty(self) -> None:
        self.assertEqual(report_columns({}), [])


class TestRenderTable(unittest.TestCase):
    """Tests for render_table()."""

    def test_two_versions(self) -> None:
        text = render_table({"install X": {"1.0.0": 120, "1.1.0": 100}})
        self.assertEqual(
            text.splitlines(),
            [
                "| **Command** | 1.0.0 | 1.1.0 |",
                "| -- | -- | -- |",
                "| install X | 120ms | 100ms (-20ms) |",
            ],
        )

    def test_slower_delta_has_plus(self) -> None:
        text = render_table({"a": {"1.0": 100, "2.0": 150}})
        self.assertIn("| 150ms (+50ms) |", text)

    def test_equal_delta(self) -> None:
        text = render_table({"a": {"1.0": 100, "2.0": 100}})
        self.assertIn("| 100ms (0ms) |", text)

    def test_rows_in_stored_order(self) -> None:
        text = render_table({"zeta": {"1": 1}, "alpha": {"1": 2}, "mid": {"1": 3}})
        rows = text.splitlines()[2:]
        self.assertEqual([r.split("|")[1].strip() for r in rows], ["zeta", "alpha", "mid"])

    def test_missing_baseline_renders_plain_values(self) -> None:
        text = render_table({"a": {"1.0": 100, "2.0": 90}, "b": {"2.0": 80}})
        self.assertIn("| b | - | 80ms |", text)

    def test_missing_cell(self) -> None:
        text = render_table({"a": {"1.0": 100, "2.0": 90}, "b": {"1.0": 80}})
        self.assertIn("| b | 80ms | - |", text)

    def test_three_versions_all_against_first(self) -> None:
        text = render_table({"a": {"1": 100, "2": 110, "3": 70}})
        self.assertIn("| a | 100ms | 110ms (+10ms) | 70ms (-30ms) |", text)

    def test_newlines_and_pipes_escaped(self) -> None:
        text = render_table({"echo a|b\nc": {"1": 5}})
        lines = text.splitlines()
        self.assertEqual(len(lines), 3)
        self.assertIn("echo a\\|bc", lines[2])

    def test_float_durations(self) -> None:
        text = render_table({"a": {"1": 100.0, "2": 100.5}})
        self.assertIn("| a | 100ms | 100.5ms (+0.5ms) |", text)

    def test_empty_report(self) -> None:
        self.assertEqual(render_table({}).splitlines(), ["| **Command** |", "| -- |"])

    def test_reflects_merged_values(self) -> None:
        persisted = merge_report({}, make_run("1.0", {"a": 120, "b": 50}))
        persisted = merge_report(persisted, make_run("2.0", {"a": 100, "b": 75}))
        text = render_table(persisted)
        for identity, cells in persisted.items():
            delta = cells["2.0"] - cells["1.0"]
            sign = "+" if delta > 0 else ""
            self.assertIn(
                f"| {identity} | {cells['1.0']}ms | {cells['2.0']}ms ({sign}{delta}ms) |", text
            )

    def test_pure(self) -> None:
        report = {"a": {"1": 1, "2": 2}}
        self.assertEqual(render_table(report), render_table(report))
        self.assertEqual(report, {"a": {"1": 1, "2": 2}})


class TestFormatRunSummary(unittest.TestCase):
    """Tests for format_run_summary()."""

    def test_counts_and_duration(self) -> None:
        run = RunReport(version="1.2.3", start_ts=0, end_ts=4_321)
        run.record(make_result("a"))
        run.record(make_result("b", code=1))
        text = format_run_summary(run)
        self.assertIn("Report for 1.2.3", text)
        self.assertIn(" * 1 commands successful", text)
        self.assertIn(" * 1 commands failed", text)
        self.assertIn(" * total duration: 4321ms", text)

    def test_unlabeled(self) -> None:
        text = format_run_summary(RunReport())
        self.assertIn("Report", text)
        self.assertIn(" * 0 commands successful", text)


if __name__ == "__main__":
    unittest.main()
