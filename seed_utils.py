#!/usr/bin/env python3
"""Utility functions and data structures for fixture seeding"""
import json, re, sys
from collections import namedtuple
from datetime import datetime, timezone
from fnmatch import fnmatchcase
from urllib.parse import urlparse

GLOBALS = {"debug": False}

DEFAULT_PROTECTED_TABLES = ("auth.*", "*api_auth")


def debug_print(*args, **kwargs):
    if GLOBALS["debug"]:
        print("[DEBUG]", *args, **kwargs)

def warn_print(message):
    print("WARNING: {0}".format(message), file=sys.stderr)

def slugify(s):
    return re.sub(r"[^0-9a-zA-Z_]+", "_", s or "")

def table_key(namespace, name):
    return "{0}.{1}".format(namespace, name)

def split_table_key(key):
    """Split "namespace.table" into its parts; a bare name has no namespace."""
    if "." not in key:
        return None, key
    return tuple(key.split(".", 1))

def table_matches_any(key, patterns):
    """True if the table key matches one of the glob patterns (e.g. "auth.*")."""
    return any(fnmatchcase(key, p) for p in patterns or ())


def extract_schema_key_from_id(schema_id):
    """
    Derive "namespace.table" from a schema $id URL.

    http://example.com/schemas/public/users.json -> public.users

    Raises:
        ValueError: if the path has fewer than two segments
    """
    path_parts = [p for p in urlparse(schema_id).path.split("/") if p]
    if len(path_parts) < 2:
        raise ValueError("Invalid $id format: {0}".format(schema_id))
    name = path_parts[-1]
    if name.endswith(".json"):
        name = name[:-len(".json")]
    return table_key(path_parts[-2], name)


ColumnMeta = namedtuple("ColumnMeta", ["name","data_type","is_nullable","column_type","column_key","extra","char_max_length","numeric_precision","numeric_scale","column_default"])
FKMeta = namedtuple("FKMeta", ["constraint_name","table_schema","table_name","column_name","referenced_table_schema","referenced_table_name","referenced_column_name"])


ISO_DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{3}|\.\d{6})?(Z|[+-]\d{2}:\d{2})?$")
MYSQL_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def mysql_datetime(value):
    """ISO 8601 timestamp string -> "YYYY-MM-DD HH:MM:SS" in UTC; anything else unchanged.

    MySQL before 8.0.19 rejects the "T" separator with an offset.
    """
    if not isinstance(value, str) or not ISO_DATETIME_PATTERN.match(value):
        return value
    moment = datetime.fromisoformat(value[:-1] + "+00:00" if value.endswith("Z") else value)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.strftime(MYSQL_DATETIME_FORMAT)

def encode_insert_value(value):
    """Convert a synthesized value into something the driver can bind.

    Arrays and nested objects are stored as JSON documents; ISO timestamps
    become MySQL DATETIME literals.
    """
    if isinstance(value, (list, dict)):
        return json.dumps(value, sort_keys=True)
    return mysql_datetime(value)

def quote_identifier(name):
    return "`{0}`".format(name.replace("`", "``"))

def quote_table(key):
    namespace, name = split_table_key(key)
    if namespace is None:
        return quote_identifier(name)
    return "{0}.{1}".format(quote_identifier(namespace), quote_identifier(name))

def sql_literal(value):
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    value = encode_insert_value(value)
    if isinstance(value, str):
        return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"
    return str(value)

def render_insert_statement(key, record):
    """Single-row INSERT for one record; an empty record inserts all defaults."""
    if not record:
        return "INSERT INTO {0} () VALUES ();\n".format(quote_table(key))
    cols = ",".join(quote_identifier(c) for c in record)
    vals = ",".join(sql_literal(v) for v in record.values())
    return "INSERT INTO {0} ({1}) VALUES ({2});\n".format(quote_table(key), cols, vals)

def render_delete_statement(key):
    return "DELETE FROM {0};\n".format(quote_table(key))
