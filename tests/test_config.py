import tempfile
import unittest
from pathlib import Path

from galaxykiro.adaptive import AdaptiveSettings
from galaxykiro.config.config import load_config, validate_config
from galaxykiro.errors import ConfigError


class LoadConfigTests(unittest.TestCase):
    def test_packaged_defaults(self) -> None:
        cfg = validate_config(load_config())
        self.assertEqual(cfg["storage"]["backend"], "json")
        self.assertEqual(cfg["adaptive"]["fatigue_threshold"], 30)
        self.assertEqual(cfg["logging"]["level"], "WARNING")
        self.assertFalse(cfg["explain"]["enabled"])

    def test_missing_file(self) -> None:
        with self.assertRaises(ConfigError):
            load_config("/nonexistent/galaxykiro.yml")

    def test_bad_yaml_and_non_mapping(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            bad = Path(tmp) / "bad.yml"
            bad.write_text("storage: [oops", encoding="utf-8")
            with self.assertRaises(ConfigError):
                load_config(str(bad))
            listy = Path(tmp) / "list.yml"
            listy.write_text("- a\n", encoding="utf-8")
            with self.assertRaises(ConfigError):
                load_config(str(listy))


class ValidateConfigTests(unittest.TestCase):
    def test_empty_gets_defaults(self) -> None:
        cfg = validate_config({})
        self.assertEqual(cfg["storage"]["progress_path"], "./data/progress.json")
        self.assertTrue(cfg["engine"]["record_results"])
        self.assertEqual(AdaptiveSettings.from_config(cfg), AdaptiveSettings())

    def test_unsupported_enums_fall_back_with_warning(self) -> None:
        with self.assertLogs("galaxykiro.config.config", level="WARNING") as logs:
            cfg = validate_config({"storage": {"backend": "redis"}, "logging": {"level": "loud"}})
        self.assertEqual(cfg["storage"]["backend"], "json")
        self.assertEqual(cfg["logging"]["level"], "WARNING")
        self.assertEqual(len(logs.records), 2)

    def test_log_level_is_normalized(self) -> None:
        self.assertEqual(validate_config({"logging": {"level": "debug"}})["logging"]["level"], "DEBUG")

    def test_adaptive_values_must_be_positive_numbers(self) -> None:
        with self.assertRaises(ConfigError):
            validate_config({"adaptive": {"fatigue_threshold": "lots"}})
        with self.assertRaises(ConfigError):
            validate_config({"adaptive": {"attention_span_window": 0}})

    def test_adaptive_overrides(self) -> None:
        cfg = validate_config({"adaptive": {"optimal_response_time_ms": 10000, "mid_assessment_break": "12"}})
        settings = AdaptiveSettings.from_config(cfg)
        self.assertEqual(settings.optimal_response_time_ms, 10000)
        self.assertEqual(settings.mid_assessment_break, 12)
        self.assertEqual(settings.energy_floor, 20)

    def test_energy_floor_bounds(self) -> None:
        cfg = validate_config({"adaptive": {"energy_floor": "0"}})
        self.assertEqual(AdaptiveSettings.from_config(cfg).energy_floor, 0)
        for bad in (100, -1, "low"):
            with self.subTest(energy_floor=bad):
                with self.assertRaises(ConfigError):
                    validate_config({"adaptive": {"energy_floor": bad}})


if __name__ == "__main__":
    unittest.main()
