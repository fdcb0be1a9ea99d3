#!/usr/bin/env python3
"""Unit tests for configuration loading"""
import argparse
import json
import os
import tempfile
import unittest

from seed_config import DEFAULT_CONFIG, add_connection_args, apply_args, load_config, merge_config
from seed_errors import ConfigError


class TestMergeConfig(unittest.TestCase):
    """Test defaults, overlays and validation"""

    def test_defaults(self):
        """Test no file gives the defaults"""
        cfg = load_config(None)
        self.assertEqual(cfg["rows"], 5)
        self.assertEqual(cfg["protected_tables"], ["auth.*", "*api_auth"])
        cfg["mysql"]["host"] = "changed"
        self.assertIsNone(DEFAULT_CONFIG["mysql"]["host"])

    def test_sections_are_overlaid(self):
        """Test partial sections keep the other defaults"""
        cfg = merge_config({"mysql": {"host": "db"}, "rows": 10, "table_rows": {"public.a": 2}})
        self.assertEqual(cfg["mysql"]["host"], "db")
        self.assertEqual(cfg["mysql"]["port"], 3306)
        self.assertEqual(cfg["rows"], 10)
        self.assertEqual(cfg["table_rows"], {"public.a": 2})

    def test_invalid_values(self):
        """Test type checks"""
        for raw in ([], {"mysql": "db"}, {"input": {"schemas": "public"}}, {"rows": -1},
                    {"rows": True}, {"protected_tables": "auth.*"}, {"table_rows": {"a": "x"}}):
            with self.assertRaises(ConfigError):
                merge_config(raw)


class TestLoadConfig(unittest.TestCase):
    """Test reading config files"""

    def setUp(self):
        fd, self.path = tempfile.mkstemp(suffix=".json")
        os.close(fd)

    def tearDown(self):
        os.remove(self.path)

    def test_load_file(self):
        """Test a valid file"""
        with open(self.path, "w") as f:
            json.dump({"input": {"schemas": ["public", "auth"]}}, f)
        self.assertEqual(load_config(self.path)["input"]["schemas"], ["public", "auth"])

    def test_bad_json(self):
        """Test malformed JSON"""
        with open(self.path, "w") as f:
            f.write("{")
        with self.assertRaises(ConfigError):
            load_config(self.path)

    def test_missing_file(self):
        """Test a missing file"""
        with self.assertRaises(ConfigError):
            load_config(self.path + ".missing")


class TestApplyArgs(unittest.TestCase):
    """Test command-line overrides"""

    def parse(self, argv):
        p = argparse.ArgumentParser()
        add_connection_args(p)
        p.add_argument("--rows", type=int, default=None)
        return p.parse_args(argv)

    def test_overrides(self):
        """Test flags beat file values"""
        cfg = merge_config({"mysql": {"host": "db", "user": "a"}, "rows": 3})
        apply_args(cfg, self.parse(["--host", "other", "--port", "3307", "--rows", "8", "--schemas", "public"]))
        self.assertEqual(cfg["mysql"]["host"], "other")
        self.assertEqual(cfg["mysql"]["port"], 3307)
        self.assertEqual(cfg["mysql"]["user"], "a")
        self.assertEqual(cfg["rows"], 8)
        self.assertEqual(cfg["input"]["schemas"], ["public"])

    def test_negative_rows(self):
        """Test --rows must not be negative"""
        with self.assertRaises(ConfigError):
            apply_args(load_config(None), self.parse(["--rows", "-2"]))


if __name__ == "__main__":
    unittest.main()
