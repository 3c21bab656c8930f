"""
Tests for configuration loading.

Usage:
    python -m pytest tests/test_config.py -v
"""
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from notekeep.config import (
    ensure_dirs, get_config_path, get_data_dir, get_db_path, get_notekeep_home,
    load_config,
)


class ConfigTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.config_home = Path(self.tmp.name) / "config"
        self.data_home = Path(self.tmp.name) / "data"
        env = {
            "XDG_CONFIG_HOME": str(self.config_home),
            "NOTEKEEP_HOME": str(self.data_home),
        }
        self.env = mock.patch.dict(os.environ, env)
        self.env.start()
        for name in ("NOTEKEEP_BACKEND", "NOTEKEEP_LOG_LEVEL"):
            os.environ.pop(name, None)

    def tearDown(self):
        self.env.stop()
        self.tmp.cleanup()

    def write_config(self, text):
        path = get_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)


class TestPaths(ConfigTestCase):

    def test_paths_follow_env(self):
        self.assertEqual(get_config_path(), self.config_home / "notekeep" / "config.toml")
        self.assertEqual(get_notekeep_home(), self.data_home)
        self.assertEqual(get_db_path(), self.data_home / "notekeep.db")

    def test_data_dir_prefers_config_home(self):
        other = Path(self.tmp.name) / "elsewhere"
        config = {"notekeep": {"home": str(other)}}
        self.assertEqual(get_data_dir(config), other)
        self.assertEqual(get_data_dir(), self.data_home)

    def test_ensure_dirs_uses_config_home(self):
        other = Path(self.tmp.name) / "elsewhere"
        ensure_dirs({"notekeep": {"home": str(other)}})
        self.assertTrue(other.is_dir())
        self.assertFalse(self.data_home.exists())

    def test_home_from_config_file(self):
        other = Path(self.tmp.name) / "from-file"
        self.write_config(f'[notekeep]\nhome = "{other}"\n')
        self.assertEqual(get_data_dir(load_config()), other)


class TestLoadConfig(ConfigTestCase):

    def test_defaults_without_file(self):
        config = load_config()
        self.assertEqual(config["storage"], {"backend": "file", "key": "notes"})
        self.assertEqual(config["logging"]["level"], "WARNING")
        self.assertEqual(config["notekeep"]["home"], str(self.data_home))

    def test_file_merges_over_defaults(self):
        self.write_config('[storage]\nbackend = "sqlite"\n')
        config = load_config()
        self.assertEqual(config["storage"]["backend"], "sqlite")
        self.assertEqual(config["storage"]["key"], "notes")

    def test_env_overrides(self):
        self.write_config('[storage]\nbackend = "sqlite"\n')
        with mock.patch.dict(os.environ, {
            "NOTEKEEP_BACKEND": "memory",
            "NOTEKEEP_LOG_LEVEL": "DEBUG",
        }):
            config = load_config()
        self.assertEqual(config["storage"]["backend"], "memory")
        self.assertEqual(config["logging"]["level"], "DEBUG")

    def test_unknown_backend(self):
        self.write_config('[storage]\nbackend = "redis"\n')
        with self.assertRaises(ValueError):
            load_config()


if __name__ == "__main__":
    unittest.main()
