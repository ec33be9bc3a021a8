# tests/test_rtp_analyzer.py
import contextlib
import io
import json
import logging
import os
import sys
import tempfile
import unittest

import numpy as np

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from slot_engine.infrastructure.concurrency.task_executor import ExecutionMode, TaskExecutor
from slot_engine.domain.machine.entities.machine_config import MachineConfig
from slot_engine.domain.machine.factories.machine_factory import MACHINE_CONFIG_DIR, MachineFactory
from slot_engine.domain.session.entities.incremental_stats import IncrementalStats
from slot_engine.application.analysis.rtp_analyzer import (
    RTPAccumulator, RTPAnalyzer, assess_rtp, estimate_line_probability, run_shard
)
from slot_engine.application.analysis.report_generator import (
    ReportGenerator, bucket_distribution, rtp_verdict
)
from slot_engine.infrastructure.config.loaders.yaml_loader import YamlConfigLoader
from slot_engine.infrastructure.config.validators.schema_validator import SchemaValidator
from slot_engine.infrastructure.logging.log_manager import log_manager
from slot_engine import main as cli

CONFIG = {
    "machine_id": "analysis_test",
    "symbols": [
        {"id": "wild", "weight": 2, "is_wild": True, "pays": {3: 50, 4: 200, 5: 1000}},
        {"id": "scatter", "weight": 3, "is_scatter": True, "pays": {3: 5, 4: 20, 5: 100}},
        {"id": "a", "weight": 6, "pays": {3: 10, 4: 40, 5: 150}},
        {"id": "k", "weight": 8, "pays": {3: 5, 4: 20, 5: 80}},
        {"id": "q", "weight": 10, "pays": {3: 2, 4: 10, 5: 40}},
    ],
    "paylines": [
        {"id": 1, "positions": [1, 1, 1, 1, 1]},
        {"id": 2, "positions": [0, 0, 0, 0, 0]},
        {"id": 3, "positions": [2, 2, 2, 2, 2]},
        {"id": 4, "positions": [0, 1, 2, 1, 0]},
        {"id": 5, "positions": [2, 1, 0, 1, 2]},
    ],
}


def without_duration(report):
    data = report.to_dict()
    data.pop("duration")
    return data


class TestRTPAnalyzer(unittest.TestCase):
    """Simulation runs are reproducible and internally consistent."""

    def setUp(self):
        self.config = MachineConfig.from_dict(CONFIG)

    def test_report_is_consistent(self):
        report = RTPAnalyzer(self.config).run(3000, bet_per_line=2, seed=42, shards=3)

        self.assertEqual(report.spins, 3000)
        self.assertEqual(report.shards, 3)
        self.assertEqual(report.total_bet_per_spin, 10)
        self.assertEqual(report.total_wagered, 3000 * 10)
        self.assertAlmostEqual(report.rtp, report.total_won / report.total_wagered * 100)
        self.assertAlmostEqual(report.house_edge, 100 - report.rtp)
        self.assertAlmostEqual(report.hit_frequency, report.win_count / 3000 * 100)
        self.assertEqual(sum(report.histogram.values()), report.win_count)
        self.assertGreater(report.win_count, 0)
        self.assertGreaterEqual(report.win_count, report.big_win_count)
        self.assertGreaterEqual(report.big_win_count, report.mega_win_count)
        self.assertGreaterEqual(report.mega_win_count, report.jackpot_count)
        self.assertEqual(report.seed, 42)
        self.assertEqual(report.rng_strategy, "xorshift")
        self.assertIsNone(report.band_assessment)

    def test_same_seed_same_report(self):
        analyzer = RTPAnalyzer(self.config)
        first = analyzer.run(2000, seed=7, shards=2)
        second = analyzer.run(2000, seed=7, shards=2)
        self.assertEqual(without_duration(first), without_duration(second))

    def test_different_seeds_differ(self):
        analyzer = RTPAnalyzer(self.config)
        a = analyzer.run(2000, seed=1)
        b = analyzer.run(2000, seed=2)
        self.assertNotEqual(a.histogram, b.histogram)

    def test_different_seeds_converge(self):
        analyzer = RTPAnalyzer(self.config)
        spins = 100_000
        a = analyzer.run(spins, seed=11, shards=2)
        b = analyzer.run(spins, seed=12, shards=2)

        # RTP is the mean win multiple in percent
        std_dev = max(a.win_multiple_std_dev, b.win_multiple_std_dev)
        standard_error = std_dev * 100 / np.sqrt(spins)
        self.assertGreater(standard_error, 0)
        self.assertLess(abs(a.rtp - b.rtp), 5 * np.sqrt(2) * standard_error)

    def test_execution_modes_agree(self):
        reports = []
        for mode in (ExecutionMode.SEQUENTIAL, ExecutionMode.MULTITHREAD, ExecutionMode.MULTIPROCESS):
            analyzer = RTPAnalyzer(self.config, task_executor=TaskExecutor(mode, max_workers=2))
            reports.append(without_duration(analyzer.run(1200, seed=99, shards=3)))

        self.assertEqual(reports[0], reports[1])
        self.assertEqual(reports[0], reports[2])

    def test_other_rng_strategy(self):
        report = RTPAnalyzer(self.config, rng_strategy="numpy").run(500, seed=3)
        self.assertEqual(report.rng_strategy, "numpy")
        self.assertEqual(report.spins, 500)

    def test_unseeded_run_reports_its_seed(self):
        report = RTPAnalyzer(self.config).run(50)
        self.assertIsInstance(report.seed, int)
        self.assertGreaterEqual(report.seed, 0)

    def test_shards_capped_by_spins(self):
        report = RTPAnalyzer(self.config).run(3, seed=5, shards=8)
        self.assertEqual(report.shards, 3)
        self.assertEqual(report.spins, 3)

    def test_target_band(self):
        report = RTPAnalyzer(self.config).run(500, seed=11, target_band=(0.0, 1e9))
        self.assertEqual(report.target_band, (0.0, 1e9))
        self.assertEqual(report.band_assessment, "within")

    def test_invalid_arguments(self):
        analyzer = RTPAnalyzer(self.config)
        with self.assertRaises(ValueError):
            analyzer.run(0)
        with self.assertRaises(ValueError):
            analyzer.run(10, shards=0)
        with self.assertRaises(ValueError):
            analyzer.run(10, seed=-1)

    def test_shard_seeds(self):
        seeds = RTPAnalyzer.derive_shard_seeds(123, 4)
        self.assertEqual(seeds, RTPAnalyzer.derive_shard_seeds(123, 4))
        self.assertEqual(len(set(seeds)), 4)
        self.assertTrue(all(0 <= seed < 2 ** 32 for seed in seeds))

    def test_split_spins(self):
        self.assertEqual(RTPAnalyzer.split_spins(10, 3), [4, 3, 3])
        self.assertEqual(sum(RTPAnalyzer.split_spins(1_000_001, 7)), 1_000_001)

    def test_shipped_machine_runs(self):
        factory = MachineFactory()
        config = factory.load_config(os.path.join(MACHINE_CONFIG_DIR, "dynamite_dash_20.yaml"))
        report = RTPAnalyzer(config).run(1000, seed=2024)
        self.assertEqual(report.total_wagered, 1000 * 20)
        self.assertEqual(report.machine_id, "dynamite_dash_20")


class TestRTPAccumulator(unittest.TestCase):

    def setUp(self):
        self.config = MachineConfig.from_dict(CONFIG)

    def test_merge_is_order_independent(self):
        a = run_shard(self.config, "xorshift", 1, 400, 1, shard_index=0)
        b = run_shard(self.config, "xorshift", 2, 300, 1, shard_index=1)

        ab, ba = a.merge(b), b.merge(a)
        self.assertEqual(ab.stats, ba.stats)
        self.assertEqual(ab.histogram, ba.histogram)
        self.assertEqual(ab.win_multiples.count, 700)
        self.assertAlmostEqual(ab.win_multiples.mean, ba.win_multiples.mean)
        self.assertAlmostEqual(ab.win_multiples.get_variance(), ba.win_multiples.get_variance())
        self.assertEqual(ab.stats.total_spins, 700)

    def test_empty_accumulator_is_identity(self):
        shard = run_shard(self.config, "xorshift", 9, 200, 1)
        merged = RTPAccumulator().merge(shard)
        self.assertEqual(merged.stats, shard.stats)
        self.assertEqual(merged.histogram, shard.histogram)
        self.assertEqual(merged.win_multiples.count, shard.win_multiples.count)


class TestIncrementalStats(unittest.TestCase):

    def test_matches_numpy(self):
        values = np.random.RandomState(0).exponential(2.0, size=1000)
        stats = IncrementalStats()
        for value in values:
            stats.update(float(value))

        self.assertEqual(stats.count, 1000)
        self.assertAlmostEqual(stats.mean, values.mean())
        self.assertAlmostEqual(stats.get_variance(), values.var(ddof=1))
        self.assertAlmostEqual(stats.get_std_dev(population=True), values.std())
        self.assertEqual(stats.max_value, values.max())

    def test_merge_equals_single_pass(self):
        values = np.random.RandomState(1).normal(5.0, 3.0, size=600)
        left, right, whole = IncrementalStats(), IncrementalStats(), IncrementalStats()
        for value in values[:250]:
            left.update(float(value))
        for value in values[250:]:
            right.update(float(value))
        for value in values:
            whole.update(float(value))

        merged = left.merge(right)
        self.assertEqual(merged.count, whole.count)
        self.assertAlmostEqual(merged.mean, whole.mean)
        self.assertAlmostEqual(merged.get_variance(), whole.get_variance())
        self.assertEqual(merged.min_value, whole.min_value)

    def test_empty(self):
        stats = IncrementalStats()
        self.assertEqual(stats.get_variance(), 0.0)
        self.assertEqual(stats.merge(IncrementalStats()).count, 0)


class TestAnalysisHelpers(unittest.TestCase):

    def setUp(self):
        self.config = MachineConfig.from_dict(CONFIG)

    def test_estimate_line_probability(self):
        catalog = self.config.catalog
        # a and wild together cover 8 of 29 weight units
        p = 8 / 29
        self.assertAlmostEqual(estimate_line_probability(catalog, "a", 3), p ** 3 * (1 - p))
        self.assertAlmostEqual(estimate_line_probability(catalog, "a", 5), p ** 5)
        self.assertAlmostEqual(
            estimate_line_probability(catalog, "a", 3, include_wilds=False), (6 / 29) ** 3 * (23 / 29)
        )
        # Wilds are not counted twice for the wild itself
        self.assertAlmostEqual(estimate_line_probability(catalog, "wild", 5), (2 / 29) ** 5)

    def test_assess_rtp(self):
        self.assertEqual(assess_rtp(93.9, (94, 97)), "below")
        self.assertEqual(assess_rtp(94.0, (94, 97)), "within")
        self.assertEqual(assess_rtp(97.0, (94, 97)), "within")
        self.assertEqual(assess_rtp(97.1, (94, 97)), "above")

    def test_rtp_verdict(self):
        self.assertTrue(rtp_verdict(95).startswith("Ideal"))
        self.assertTrue(rtp_verdict(92).startswith("Slightly low"))
        self.assertTrue(rtp_verdict(98).startswith("High"))
        self.assertTrue(rtp_verdict(85).startswith("Too low"))
        self.assertTrue(rtp_verdict(101).startswith("Too high"))

    def test_bucket_distribution(self):
        rows = bucket_distribution({0: 5, 3: 2, 20: 1, 57: 4})
        self.assertEqual(len(rows), 21)
        self.assertEqual(rows[0], ("0x-1x", 5))
        self.assertEqual(rows[3], ("3x-4x", 2))
        self.assertEqual(rows[-1], ("20x+", 5))


class TestReportGenerator(unittest.TestCase):

    def setUp(self):
        self.config = MachineConfig.from_dict(CONFIG)
        self.report = RTPAnalyzer(self.config).run(800, seed=21, target_band=(94.0, 97.0))
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_render_text(self):
        text = ReportGenerator().render_text(self.report, self.config)
        for heading in ("SYMBOL PROBABILITIES", "SIMULATION RESULTS", "WIN DISTRIBUTION", "COMPARISON"):
            self.assertIn(heading, text)
        self.assertIn("20x+", text)
        self.assertIn("Nevada", text)
        self.assertIn(f"{self.report.rtp:.4f}%", text)
        self.assertIn("Target band 94.00-97.00%", text)

    def test_strip_machine_reports_stop_shares(self):
        strip_config = MachineConfig.from_dict(
            dict(CONFIG, reel_strips=[["a", "a", "k", "q", "wild", "scatter"]] * 5)
        )
        table = ReportGenerator().render_symbol_table(strip_config)

        self.assertIn("reel strips", table)
        self.assertNotIn("P(3)", table)
        self.assertIn(f"{'a':<12}{10:>8}{10 / 30:>9.2%}", table)
        self.assertIn(f"{'Total':<12}{30:>8}", table)

    def test_render_without_config(self):
        text = ReportGenerator().render_text(self.report)
        self.assertNotIn("SYMBOL PROBABILITIES", text)

    def test_save_json(self):
        path = ReportGenerator(self.tmpdir.name).save_json(self.report)
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(data["report"]["spins"], 800)
        self.assertEqual(data["report"]["seed"], 21)
        self.assertEqual(data["report"]["target_band"], [94.0, 97.0])
        self.assertIn("verdict", data)

    def test_plot_distribution(self):
        path = ReportGenerator(self.tmpdir.name).plot_distribution(self.report)
        self.assertTrue(path.endswith(".png"))
        self.assertGreater(os.path.getsize(path), 0)

    def test_file_output_needs_directory(self):
        with self.assertRaises(ValueError):
            ReportGenerator().save_json(self.report)


class TestCommandLine(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()
        # Drop the handlers the CLI attached so later tests log to the runner only
        for handler in log_manager.handlers.values():
            logging.getLogger().removeHandler(handler)
        log_manager.handlers.clear()

    def run_cli(self, *args):
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            code = cli.main(list(args))
        return code, stdout.getvalue()

    def test_full_run(self):
        code, output = self.run_cli(
            "400", "--seed", "5", "--shards", "2", "--mode", "sequential", "--no-progress",
            "--target-band", "90", "98", "--output-dir", self.tmpdir.name, "--plot", "--log-mode", "none",
        )
        self.assertEqual(code, 0)
        self.assertIn("RTP ANALYSIS: dynamite_dash_20", output)
        self.assertIn("Spins:               400", output)
        files = os.listdir(self.tmpdir.name)
        self.assertTrue(any(name.endswith(".json") for name in files))
        self.assertTrue(any(name.endswith(".png") for name in files))

    def test_fifty_line_machine_by_name(self):
        code, output = self.run_cli(
            "100", "-m", "dynamite_dash_50.yaml", "--seed", "1", "--mode", "sequential",
            "--no-progress", "--log-mode", "none",
        )
        self.assertEqual(code, 0)
        self.assertIn("dynamite_dash_50", output)

    def test_missing_machine_file(self):
        code, _ = self.run_cli(
            "10", "-m", os.path.join(self.tmpdir.name, "missing.yaml"), "--mode", "sequential",
            "--no-progress", "--log-mode", "none",
        )
        self.assertEqual(code, 1)

    def test_bet_above_machine_limit(self):
        code, _ = self.run_cli(
            "10", "--bet", "1000", "--mode", "sequential", "--no-progress", "--log-mode", "none",
        )
        self.assertEqual(code, 1)

    def test_missing_analysis_config(self):
        code, _ = self.run_cli("10", "-c", os.path.join(self.tmpdir.name, "missing.yaml"))
        self.assertEqual(code, 1)

    def test_mistyped_analysis_values(self):
        for line in ('shards: "4"', 'spins: 1.5', 'bet_per_line: 0', 'target_band: [94]'):
            with self.subTest(line=line):
                path = os.path.join(self.tmpdir.name, "analysis.yaml")
                with open(path, "w", encoding="utf-8") as f:
                    f.write(f"machine: dynamite_dash_20.yaml\n{line}\n")
                stderr = io.StringIO()
                with contextlib.redirect_stderr(stderr):
                    code, _ = self.run_cli("-c", path, "--no-progress", "--log-mode", "none")
                self.assertEqual(code, 1)
                self.assertIn("validation failed", stderr.getvalue())

    def test_shipped_analysis_config_is_valid(self):
        loader = YamlConfigLoader(SchemaValidator())
        config = loader.load_file(cli.DEFAULT_ANALYSIS_PATH, schema_path=cli.ANALYSIS_SCHEMA_PATH)
        self.assertEqual(config["shards"], 4)

    def test_rejects_non_positive_spins(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                cli.parse_arguments(["0"])


if __name__ == "__main__":
    unittest.main()
