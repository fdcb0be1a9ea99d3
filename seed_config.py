#!/usr/bin/env python3
"""Configuration loading for the fixture seeding scripts"""
import copy, json

from seed_errors import ConfigError
from seed_utils import DEFAULT_PROTECTED_TABLES
from schema_introspector import DEFAULT_BASE_URL

DEFAULT_CONFIG = {
    "mysql": {
        "host": None,
        "port": 3306,
        "user": None,
        "password": None,
        "database": None,
        "charset": "utf8mb4",
    },
    "input": {
        "schemas": [],
        "include": [],
        "exclude": [],
    },
    "output": {
        "out_dir": "./output",
        "base_url": DEFAULT_BASE_URL,
        "indent": 2,
    },
    "protected_tables": list(DEFAULT_PROTECTED_TABLES),
    "rows": 5,
    "table_rows": {},
    "array_count": 5,
    "lookup_batch_size": 100,
}

_SECTIONS = ("mysql", "input", "output")
_LIST_KEYS = (("input", "schemas"), ("input", "include"), ("input", "exclude"))
_POSITIVE_INTS = ("rows", "array_count", "lookup_batch_size")


def default_config():
    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(raw):
    """
    Overlay a user config object on the defaults and validate it.

    Raises:
        ConfigError: unknown section types or invalid values
    """
    if not isinstance(raw, dict):
        raise ConfigError("Config must be an object")
    cfg = default_config()
    for key, value in raw.items():
        if key in _SECTIONS:
            if not isinstance(value, dict):
                raise ConfigError("'{0}' must be an object".format(key))
            cfg[key].update(value)
        else:
            cfg[key] = value

    for section, key in _LIST_KEYS:
        if not isinstance(cfg[section][key], list):
            raise ConfigError("'{0}.{1}' must be an array".format(section, key))
    if not isinstance(cfg["protected_tables"], list):
        raise ConfigError("'protected_tables' must be an array")
    for key in _POSITIVE_INTS:
        if not isinstance(cfg[key], int) or isinstance(cfg[key], bool) or cfg[key] < 0:
            raise ConfigError("'{0}' must be a non-negative integer".format(key))
    if not isinstance(cfg["table_rows"], dict):
        raise ConfigError("'table_rows' must be an object")
    for table, rows in cfg["table_rows"].items():
        if not isinstance(rows, int) or isinstance(rows, bool) or rows < 0:
            raise ConfigError("'table_rows.{0}' must be a non-negative integer".format(table))
    return cfg


def load_config(path=None):
    """Read and validate a JSON config file; no path gives the defaults."""
    if path is None:
        return default_config()
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except IOError:
        raise ConfigError("Config file not found: {0}".format(path))
    except json.JSONDecodeError as e:
        raise ConfigError("Invalid JSON in {0}: {1}".format(path, e))
    return merge_config(raw)


def add_connection_args(p):
    p.add_argument("--config", default=None, help="JSON config file path")
    p.add_argument("--host", default=None, help="MySQL host")
    p.add_argument("--port", type=int, default=None, help="MySQL port (default: 3306)")
    p.add_argument("--user", default=None, help="MySQL user")
    p.add_argument("--password", default=None, help="MySQL password")
    p.add_argument("--ask-pass", action="store_true", help="Prompt for password")
    p.add_argument("--schemas", nargs="+", default=None, help="Schemas (databases) to read")
    p.add_argument("--debug", action="store_true", help="Enable debug output")


def apply_args(cfg, args):
    """Command-line values take precedence over the config file."""
    overrides = {"host": args.host, "port": args.port, "user": args.user, "password": args.password}
    for key, value in overrides.items():
        if value is not None:
            cfg["mysql"][key] = value
    if getattr(args, "schemas", None):
        cfg["input"]["schemas"] = list(args.schemas)
    if getattr(args, "rows", None) is not None:
        if args.rows < 0:
            raise ConfigError("--rows must be a non-negative integer")
        cfg["rows"] = args.rows
    if getattr(args, "out_dir", None):
        cfg["output"]["out_dir"] = args.out_dir
    return cfg
