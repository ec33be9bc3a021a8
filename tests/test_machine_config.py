# tests/test_machine_config.py
import copy
import unittest
import sys
import os
import tempfile

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from slot_engine.infrastructure.config.loaders.yaml_loader import (
    FileNotFoundConfigError, MachineConfigError, SchemaValidationError, YamlConfigLoader, YamlParseError
)
from slot_engine.infrastructure.config.validators.schema_validator import SchemaValidator
from slot_engine.domain.machine.entities.machine_config import INT64_MAX, MachineConfig
from slot_engine.domain.machine.factories.machine_factory import (
    MACHINE_CONFIG_DIR, MACHINE_SCHEMA_PATH, MachineFactory
)
from slot_engine.domain.machine.services.strip_sampler import ReelStripSampler
from slot_engine.domain.machine.services.symbol_sampler import WeightedSymbolSampler

BASE_CONFIG = {
    "machine_id": "test_machine",
    "reels": 5,
    "rows": 3,
    "symbols": [
        {"id": "wild", "weight": 2, "is_wild": True, "pays": {3: 100, 4: 500, 5: 1000}},
        {"id": "scatter", "weight": 3, "is_scatter": True, "pays": {3: 8}},
        {"id": "a", "weight": 10, "pays": {3: 10, 4: 50, 5: 200}},
        {"id": "k", "weight": 12, "pays": {3: 5, 4: 20, 5: 100}},
    ],
    "paylines": [
        {"id": 1, "name": "Middle Straight", "positions": [1, 1, 1, 1, 1]},
        {"id": 2, "name": "Top Straight", "positions": [0, 0, 0, 0, 0]},
    ],
}


def config_with(**changes):
    config = copy.deepcopy(BASE_CONFIG)
    config.update(changes)
    return config


class TestMachineConfigValidation(unittest.TestCase):
    """Every unplayable table must be rejected before a spin can run."""

    def assertRejected(self, config, fragment):
        with self.assertRaises(MachineConfigError) as ctx:
            MachineConfig.from_dict(config)
        self.assertTrue(
            any(fragment in error for error in ctx.exception.errors),
            f"{fragment!r} not in {ctx.exception.errors}"
        )

    def test_valid_config(self):
        config = MachineConfig.from_dict(BASE_CONFIG)
        self.assertEqual(config.machine_id, "test_machine")
        self.assertEqual(config.payline_count, 2)
        self.assertEqual(len(config.catalog), 4)
        self.assertEqual(config.catalog.total_weight, 27)
        self.assertEqual(config.catalog.scatter_symbol.id, "scatter")
        self.assertEqual([s.id for s in config.catalog.wild_symbols], ["wild"])
        self.assertAlmostEqual(config.catalog.probability("a"), 10 / 27)
        self.assertEqual(config.rng_strategy, "xorshift")
        self.assertIsNone(config.reel_strips)

    def test_zero_weight(self):
        config = config_with()
        config["symbols"][2]["weight"] = 0
        self.assertRejected(config, "weight must be an integer >= 1")

    def test_duplicate_symbol_ids(self):
        config = config_with()
        config["symbols"][3]["id"] = "a"
        self.assertRejected(config, "duplicate symbol id 'a'")

    def test_wild_and_scatter_on_one_symbol(self):
        config = config_with()
        config["symbols"][0]["is_scatter"] = True
        self.assertRejected(config, "cannot be both wild and scatter")

    def test_multiple_scatters(self):
        config = config_with()
        config["symbols"][3]["is_scatter"] = True
        self.assertRejected(config, "at most one scatter symbol")

    def test_wild_without_pays(self):
        config = config_with()
        config["symbols"][0]["pays"] = {}
        self.assertRejected(config, "must define at least one pay")

    def test_non_positive_multiplier(self):
        config = config_with()
        config["symbols"][2]["pays"] = {3: 0}
        self.assertRejected(config, "multiplier for 3 must be a positive integer")

    def test_fractional_multiplier(self):
        config = config_with()
        config["symbols"][2]["pays"] = {3: 2.5}
        self.assertRejected(config, "multiplier for 3 must be a positive integer")

    def test_payline_row_out_of_range(self):
        config = config_with(paylines=[{"id": 1, "positions": [1, 1, 3, 1, 1]}])
        self.assertRejected(config, "outside [0, 3)")

    def test_payline_wrong_length(self):
        config = config_with(paylines=[{"id": 1, "positions": [1, 1, 1, 1]}])
        self.assertRejected(config, "expected 5 positions, got 4")

    def test_duplicate_payline_ids(self):
        config = config_with(paylines=[
            {"id": 1, "positions": [1, 1, 1, 1, 1]},
            {"id": 1, "positions": [0, 0, 0, 0, 0]},
        ])
        self.assertRejected(config, "duplicate payline id 1")

    def test_empty_tables(self):
        self.assertRejected(config_with(symbols=[]), "catalog defines no symbols")
        self.assertRejected(config_with(paylines=[]), "payline table is empty")

    def test_malformed_entry(self):
        config = config_with()
        del config["symbols"][2]["weight"]
        self.assertRejected(config, "symbols[2]: malformed entry")

    def test_bad_geometry(self):
        self.assertRejected(config_with(reels=0), "'reels' must be a positive integer")

    def test_descending_win_tiers(self):
        self.assertRejected(config_with(win_tiers={"big": 60, "mega": 50}), "win_tiers must ascend")

    def test_non_integer_payline_rows(self):
        self.assertRejected(config_with(paylines=[{"id": 1, "positions": ["1"] * 5}]),
                            "rows must be integers")
        self.assertRejected(config_with(paylines=[{"id": 1, "positions": "11111"}]),
                            "rows must be integers")

    def test_non_integer_payline_id(self):
        self.assertRejected(config_with(paylines=[{"id": "one", "positions": [1, 1, 1, 1, 1]}]),
                            "id must be an integer")

    def test_non_integer_win_tiers(self):
        self.assertRejected(config_with(win_tiers={"big": "10"}), "win_tiers values must be integers")
        self.assertRejected(config_with(win_tiers={"mega": 0}), "win_tiers values must be integers")
        self.assertRejected(config_with(win_tiers={"huge": 500}), "unknown tiers ['huge']")

    def test_unknown_rng_strategy(self):
        self.assertRejected(config_with(rng={"strategy": "dice"}), "rng.strategy must be one of")

    def test_bad_rng_seed(self):
        self.assertRejected(config_with(rng={"strategy": "numpy", "seed": "42"}), "rng.seed")

    def test_rng_block_is_read(self):
        config = MachineConfig.from_dict(config_with(rng={"strategy": "NumPy", "seed": 7}))
        self.assertEqual(config.rng_strategy, "numpy")
        self.assertEqual(config.rng_seed, 7)

    def test_errors_are_collected(self):
        config = config_with(paylines=[{"id": 1, "positions": [1, 1, 1, 1]}])
        config["symbols"][2]["weight"] = 0
        with self.assertRaises(MachineConfigError) as ctx:
            MachineConfig.from_dict(config)
        self.assertGreaterEqual(len(ctx.exception.errors), 2)

    def test_duplicate_pattern_only_warns(self):
        config = config_with(paylines=[
            {"id": 1, "positions": [0, 0, 1, 2, 2]},
            {"id": 2, "positions": [0, 0, 1, 2, 2]},
        ])
        with self.assertLogs("domain.machine.paylines", level="WARNING") as logs:
            machine_config = MachineConfig.from_dict(config)
        self.assertEqual(machine_config.payline_count, 2)
        self.assertIn("repeats the pattern of payline 1", logs.output[0])

    def test_reel_strips(self):
        strips = [["a", "k", "wild", "scatter"]] * 5
        config = MachineConfig.from_dict(config_with(reel_strips=strips))
        self.assertEqual(len(config.reel_strips), 5)

        self.assertRejected(config_with(reel_strips=strips[:4]), "expected 5 strips, got 4")
        self.assertRejected(
            config_with(reel_strips=[["a", "x", "k"]] * 5), "unknown symbols ['x']"
        )
        self.assertRejected(config_with(reel_strips=[["a", "k"]] * 5), "needs at least 3 stops")

    def test_max_bet_allowed(self):
        config = MachineConfig.from_dict(config_with(max_bet_per_line=50))
        # Best line pay 1000 plus best scatter pay 8, on two lines
        self.assertEqual(config.max_win_per_bet_unit, 2 * (1000 + 8))
        self.assertEqual(config.max_bet_allowed, 50)

        unlimited = MachineConfig.from_dict(BASE_CONFIG)
        self.assertEqual(unlimited.max_bet_allowed, INT64_MAX // (2 * 1008))


class TestMachineFactory(unittest.TestCase):
    """Loading machine files through the schema and the typed config."""

    def setUp(self):
        self.factory = MachineFactory()
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def write(self, name, text):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_shipped_twenty_line_machine(self):
        path = os.path.join(MACHINE_CONFIG_DIR, "dynamite_dash_20.yaml")
        with self.assertLogs("domain.machine.paylines", level="WARNING") as logs:
            config = self.factory.load_config(path)

        self.assertEqual(config.machine_id, "dynamite_dash_20")
        self.assertEqual(config.payline_count, 20)
        self.assertEqual(len(config.catalog), 12)
        self.assertEqual(config.catalog.total_weight, 181)
        self.assertEqual(config.paylines.get(1).name, "Middle Straight")
        self.assertEqual(config.catalog.get("wild").pay_for(5), 8200)
        self.assertEqual(config.catalog.scatter_symbol.name, "Dynamite")
        self.assertTrue(config.catalog.get("train").is_train)
        # Lines 18 and 19 repeat 6 and 7
        self.assertEqual(len(logs.output), 2)

    def test_shipped_fifty_line_machine(self):
        config = self.factory.load_config(os.path.join(MACHINE_CONFIG_DIR, "dynamite_dash_50.yaml"))
        self.assertEqual(config.payline_count, 50)
        patterns = {payline.positions for payline in config.paylines}
        self.assertEqual(len(patterns), 50)

    def test_create_machine_from_file(self):
        path = os.path.join(MACHINE_CONFIG_DIR, "dynamite_dash_50.yaml")
        machine = self.factory.create_machine_from_file(path, seed=1)
        self.assertIsInstance(machine.sampler, WeightedSymbolSampler)
        info = machine.get_info()
        self.assertEqual(info["num_paylines"], 50)
        self.assertEqual(info["scatter_symbol"], "scatter")
        self.assertEqual(info["max_bet_per_line"], 100)

        result = machine.play(1)
        self.assertEqual(result.total_bet, 50)
        self.assertEqual(machine.draw_grid().shape, (5, 3))

    def test_same_seed_same_outcomes(self):
        config = MachineConfig.from_dict(BASE_CONFIG)
        a = self.factory.create_machine(config, seed=99)
        b = self.factory.create_machine(config, seed=99)
        self.assertEqual([a.play(1) for _ in range(20)], [b.play(1) for _ in range(20)])

    def test_machine_uses_reel_strips_when_configured(self):
        machine = self.factory.create_machine(
            config_with(reel_strips=[["a", "k", "wild", "scatter"]] * 5), seed=3
        )
        self.assertIsInstance(machine.sampler, ReelStripSampler)
        self.assertEqual(machine.draw_grid().shape, (5, 3))

    def test_quoted_pay_keys(self):
        path = self.write("quoted.yaml", """
symbols:
  - {id: a, weight: 1, pays: {"3": 5}}
  - {id: b, weight: 1, pays: {"3": 6}}
paylines:
  - {id: 1, positions: [0, 0, 0, 0, 0]}
""")
        config = self.factory.load_config(path)
        self.assertEqual(config.machine_id, "quoted")
        self.assertEqual(config.catalog.get("a").pay_for(3), 5)

    def test_schema_violation(self):
        path = self.write("no_lines.yaml", "symbols:\n  - {id: a, weight: 1}\n")
        with self.assertRaises(SchemaValidationError) as ctx:
            self.factory.load_config(path)
        self.assertTrue(any("paylines" in error for error in ctx.exception.errors))

    def test_schema_rejects_zero_weight(self):
        path = self.write("zero.yaml", """
symbols:
  - {id: a, weight: 0}
paylines:
  - {id: 1, positions: [0, 0, 0, 0, 0]}
""")
        with self.assertRaises(SchemaValidationError):
            self.factory.load_config(path)

    def test_semantic_error_names_the_file(self):
        path = self.write("bad_rows.yaml", """
symbols:
  - {id: a, weight: 1, pays: {3: 5}}
paylines:
  - {id: 1, positions: [0, 0, 7, 0, 0]}
""")
        with self.assertRaises(MachineConfigError) as ctx:
            self.factory.load_config(path)
        self.assertIn("bad_rows.yaml", ctx.exception.message)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundConfigError):
            self.factory.load_config(os.path.join(self.tmpdir.name, "nope.yaml"))

    def test_unparseable_yaml(self):
        path = self.write("broken.yaml", "symbols: [\n  - id: a\n")
        with self.assertRaises(YamlParseError):
            self.factory.load_config(path)

    def test_empty_file_loads_as_empty_mapping(self):
        path = self.write("empty.yaml", "")
        self.assertEqual(YamlConfigLoader().load_file(path), {})

    def test_schema_file_is_valid_json(self):
        loader = YamlConfigLoader(SchemaValidator())
        schema = loader._load_schema(MACHINE_SCHEMA_PATH)
        self.assertEqual(schema["type"], "object")


if __name__ == "__main__":
    unittest.main()
