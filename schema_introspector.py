#!/usr/bin/env python3
"""Schema introspection: MySQL catalog metadata to JSON-Schema table documents"""
import re
from fnmatch import fnmatchcase

from seed_utils import ColumnMeta, FKMeta, debug_print, table_key

DEFAULT_BASE_URL = "http://example.com/schemas"

ENUM_PATTERN = re.compile(r"'((?:[^']|(?:''))*)'")

INTEGER_TYPES = ("int", "integer", "bigint", "smallint", "tinyint", "mediumint", "year")
NUMBER_TYPES = ("decimal", "numeric", "float", "double", "real")
DATETIME_TYPES = ("datetime", "timestamp")
GENERATED_EXTRAS = ("auto_increment", "virtual generated", "stored generated")


def list_tables(conn, schema):
    """Base table names of one schema, sorted"""
    cur = conn.cursor()
    cur.execute(
        "SELECT TABLE_NAME FROM information_schema.TABLES "
        "WHERE TABLE_SCHEMA=%s AND TABLE_TYPE='BASE TABLE' ORDER BY TABLE_NAME",
        (schema,)
    )
    return [r[0] for r in cur.fetchall()]


def load_table_columns(conn, schema, table):
    """Load column metadata from information_schema"""
    cur = conn.cursor()
    cur.execute(
        "SELECT COLUMN_NAME, DATA_TYPE, IS_NULLABLE, COLUMN_TYPE, "
        "COLUMN_KEY, EXTRA, CHARACTER_MAXIMUM_LENGTH, NUMERIC_PRECISION, "
        "NUMERIC_SCALE, COLUMN_DEFAULT FROM information_schema.COLUMNS "
        "WHERE TABLE_SCHEMA=%s AND TABLE_NAME=%s ORDER BY ORDINAL_POSITION",
        (schema, table)
    )
    return [ColumnMeta(*r) for r in cur.fetchall()]


def load_fk_constraints_for_schema(conn, schema):
    """Load single-column foreign keys declared by tables of one schema"""
    cur = conn.cursor()
    cur.execute(
        "SELECT CONSTRAINT_NAME, TABLE_SCHEMA, TABLE_NAME, COLUMN_NAME, "
        "REFERENCED_TABLE_SCHEMA, REFERENCED_TABLE_NAME, REFERENCED_COLUMN_NAME "
        "FROM information_schema.KEY_COLUMN_USAGE "
        "WHERE TABLE_SCHEMA=%s AND REFERENCED_TABLE_NAME IS NOT NULL "
        "ORDER BY TABLE_NAME, CONSTRAINT_NAME, ORDINAL_POSITION",
        (schema,)
    )
    return [FKMeta(*r) for r in cur.fetchall()]


def parse_enum_values(column_type):
    """enum('a','b''c') -> ['a', "b'c"]"""
    return [v.replace("''", "'") for v in ENUM_PATTERN.findall(column_type or "")]


def is_generated_column(col):
    extra = (col.extra or "").lower()
    return any(marker in extra for marker in GENERATED_EXTRAS)


def column_to_property(col):
    """
    JSON-Schema property for one column.

    Returns: dict with "type" and optional "format"/"enum"/"isGenerated"
    """
    dtype = (col.data_type or "").lower()
    column_type = (col.column_type or "").lower()

    if dtype == "tinyint" and column_type.startswith("tinyint(1)"):
        prop = {"type": "boolean"}
    elif dtype in ("bool", "boolean", "bit"):
        prop = {"type": "boolean"}
    elif dtype in INTEGER_TYPES:
        prop = {"type": "integer"}
    elif dtype in NUMBER_TYPES:
        prop = {"type": "number"}
    elif dtype == "date":
        prop = {"type": "string", "format": "date"}
    elif dtype in DATETIME_TYPES:
        prop = {"type": "string", "format": "date-time"}
    elif dtype == "enum":
        prop = {"type": "string", "enum": parse_enum_values(col.column_type)}
    elif dtype == "json":
        prop = {"type": "object"}
    elif dtype == "char" and col.char_max_length == 36:
        prop = {"type": "string", "format": "uuid"}
    elif dtype == "binary" and "uuid" in col.name.lower():
        prop = {"type": "string", "format": "uuid"}
    else:
        prop = {"type": "string"}

    if is_generated_column(col):
        prop["isGenerated"] = True
    return prop


def _included(schema, table, include, exclude):
    names = (table_key(schema, table), table)
    if include and not any(fnmatchcase(n, p) for n in names for p in include):
        return False
    return not any(fnmatchcase(n, p) for n in names for p in exclude or ())


class SchemaConverter(object):
    """
    Converts MySQL catalog metadata into JSON-Schema table documents.

    Handles:
    - Listing base tables of the configured schemas (include/exclude globs)
    - Mapping column types onto JSON-Schema type/format/enum
    - Marking auto-increment and generated columns with isGenerated
    - Annotating foreign key columns with foreignTable/foreignColumn
    """

    def __init__(self, conn, schemas, include=None, exclude=None, base_url=DEFAULT_BASE_URL):
        """
        Args:
            conn: MySQL database connection
            schemas: list of schema (database) names to convert
            include: table globs to keep ("users", "public.*"); empty keeps all
            exclude: table globs to drop
            base_url: prefix of every document $id
        """
        self.conn = conn
        self.schemas = list(schemas)
        self.include = list(include or [])
        self.exclude = list(exclude or [])
        self.base_url = base_url.rstrip("/")

    def convert(self):
        """
        Returns: list of JSON-Schema documents, one per table, ordered by
            schema then table name
        """
        documents = []
        for schema in self.schemas:
            fks = {}
            for fk in load_fk_constraints_for_schema(self.conn, schema):
                fks[(fk.table_name, fk.column_name)] = fk
            for table in list_tables(self.conn, schema):
                if not _included(schema, table, self.include, self.exclude):
                    debug_print("Excluding {0}".format(table_key(schema, table)))
                    continue
                columns = load_table_columns(self.conn, schema, table)
                documents.append(self.table_document(schema, table, columns, fks))
        debug_print("Converted {0} tables from {1}".format(len(documents), self.schemas))
        return documents

    def table_document(self, schema, table, columns, fks):
        properties, required = {}, []
        for col in columns:
            prop = column_to_property(col)
            fk = fks.get((table, col.name))
            if fk is not None:
                prop["foreignTable"] = table_key(fk.referenced_table_schema, fk.referenced_table_name)
                prop["foreignColumn"] = fk.referenced_column_name
            properties[col.name] = prop
            if col.is_nullable == "NO" and col.column_default is None and not prop.get("isGenerated"):
                required.append(col.name)
        document = {
            "$schema": "http://json-schema.org/draft-07/schema#",
            "$id": "{0}/{1}/{2}.json".format(self.base_url, schema, table),
            "title": table_key(schema, table),
            "type": "object",
            "properties": properties,
            "additionalProperties": False,
        }
        if required:
            document["required"] = required
        return document
