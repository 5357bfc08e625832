import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from taskconsole import config


class TestGetSetting(unittest.TestCase):
    """Test setting lookup priority"""

    def setUp(self):
        """Create a temporary config file for testing"""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = Path(self.temp_dir.name) / "config.json"
        self.patcher = patch("taskconsole.config.CONFIG_FILE", self.config_path)
        self.patcher.start()

    def tearDown(self):
        """Clean up temporary files"""
        self.patcher.stop()
        self.temp_dir.cleanup()

    def write_config(self, data):
        with open(self.config_path, "w") as f:
            json.dump(data, f)

    def test_default_when_nothing_set(self):
        """Test the default is used without env var or config file"""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("TASKCONSOLE_TEST_KEY", None)
            self.assertEqual(config.get_setting("TASKCONSOLE_TEST_KEY", "fallback"), "fallback")

    def test_config_file_beats_default(self):
        """Test a config file value overrides the default"""
        self.write_config({"TASKCONSOLE_TEST_KEY": "from-file"})
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("TASKCONSOLE_TEST_KEY", None)
            self.assertEqual(config.get_setting("TASKCONSOLE_TEST_KEY", "fallback"), "from-file")

    def test_env_var_beats_config_file(self):
        """Test an environment variable overrides the config file"""
        self.write_config({"TASKCONSOLE_TEST_KEY": "from-file"})
        with patch.dict(os.environ, {"TASKCONSOLE_TEST_KEY": "from-env"}):
            self.assertEqual(config.get_setting("TASKCONSOLE_TEST_KEY", "fallback"), "from-env")

    def test_non_string_config_values(self):
        """Test JSON booleans and numbers are returned as strings"""
        self.write_config({"TASKCONSOLE_TEST_KEY": 3})
        self.assertEqual(config.get_setting("TASKCONSOLE_TEST_KEY", "0"), "3")

    def test_invalid_json_warns_and_is_ignored(self):
        """Test a broken config file falls back to defaults with a warning"""
        with open(self.config_path, "w") as f:
            f.write("invalid json content {{{")

        with patch("taskconsole.config._warnings") as mock_warnings:
            self.assertEqual(config.load_config(), {})
            self.assertEqual(config.get_setting("TASKCONSOLE_TEST_KEY", "fallback"), "fallback")

        mock_warnings.print.assert_called()
        self.assertIn("Could not load config file", mock_warnings.print.call_args[0][0])

    def test_invalid_json_warns_once(self):
        """Test a broken config file is reported once, not on every lookup"""
        with open(self.config_path, "w") as f:
            f.write("invalid json content {{{")

        with patch("taskconsole.config._warnings") as mock_warnings:
            for _ in range(3):
                config.get_setting("TASKCONSOLE_TEST_KEY", "fallback")

        mock_warnings.print.assert_called_once()

    def test_changed_file_is_reloaded(self):
        """Test an edited config file is read again"""
        self.write_config({"TASKCONSOLE_TEST_KEY": "first"})
        self.assertEqual(config.load_config(), {"TASKCONSOLE_TEST_KEY": "first"})
        self.write_config({"TASKCONSOLE_TEST_KEY": "second value"})
        self.assertEqual(config.load_config(), {"TASKCONSOLE_TEST_KEY": "second value"})

    def test_returned_config_is_a_copy(self):
        """Test callers cannot change the cached config"""
        self.write_config({"TASKCONSOLE_TEST_KEY": "kept"})
        config.load_config()["TASKCONSOLE_TEST_KEY"] = "changed"
        self.assertEqual(config.load_config(), {"TASKCONSOLE_TEST_KEY": "kept"})

    def test_missing_file_is_empty_config(self):
        """Test a missing config file is treated as empty"""
        self.assertEqual(config.load_config(), {})


class TestBoolSettings(unittest.TestCase):
    """Test boolean settings and the ANSI override"""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.patcher = patch(
            "taskconsole.config.CONFIG_FILE", Path(self.temp_dir.name) / "config.json"
        )
        self.patcher.start()

    def tearDown(self):
        self.patcher.stop()
        self.temp_dir.cleanup()

    def test_bool_spellings(self):
        """Test the accepted spellings of true"""
        for value in ("true", "TRUE", "1", "yes", "on"):
            with patch.dict(os.environ, {"TASKCONSOLE_TEST_FLAG": value}):
                self.assertTrue(config.get_bool_setting("TASKCONSOLE_TEST_FLAG", False), value)
        for value in ("false", "0", "no", "off", "nonsense"):
            with patch.dict(os.environ, {"TASKCONSOLE_TEST_FLAG": value}):
                self.assertFalse(config.get_bool_setting("TASKCONSOLE_TEST_FLAG", True), value)

    def test_bool_default(self):
        """Test the default is used when the flag is not set"""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("TASKCONSOLE_TEST_FLAG", None)
            self.assertTrue(config.get_bool_setting("TASKCONSOLE_TEST_FLAG", True))
            self.assertFalse(config.get_bool_setting("TASKCONSOLE_TEST_FLAG", False))

    def test_capture_defaults(self):
        """Test the default capture behavior: record, do not forward"""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("TASKCONSOLE_RECORD_OUTPUT", None)
            os.environ.pop("TASKCONSOLE_REAL_CONSOLE_OUTPUT", None)
            self.assertTrue(config.default_record_output())
            self.assertFalse(config.default_real_console_output())

    def test_ansi_override_values(self):
        """Test TASKCONSOLE_ANSI parsing"""
        cases = {"auto": None, "AUTO": None, "true": True, "1": True, "false": False, "off": False}
        for value, expected in cases.items():
            with patch.dict(os.environ, {"TASKCONSOLE_ANSI": value}):
                self.assertIs(config.get_ansi_override(), expected, value)

    def test_ansi_override_invalid_value(self):
        """Test an unknown TASKCONSOLE_ANSI value warns and falls back to auto"""
        with (
            patch.dict(os.environ, {"TASKCONSOLE_ANSI": "sometimes"}),
            patch("taskconsole.config._warnings") as mock_warnings,
        ):
            self.assertIsNone(config.get_ansi_override())
        mock_warnings.print.assert_called_once()


class TestConfiguration(unittest.TestCase):
    """Test configuration defaults"""

    def test_default_values_exist(self):
        """Test that every default is a string"""
        for key, value in config.DEFAULT_CONFIG.items():
            self.assertTrue(key.startswith("TASKCONSOLE_"))
            self.assertIsInstance(value, str)

    def test_paths(self):
        """Test that file paths are Path objects"""
        self.assertIsInstance(config.TASKCONSOLE_DIR, Path)
        self.assertIsInstance(config.CONFIG_FILE, Path)
