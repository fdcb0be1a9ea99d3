#!/usr/bin/env python3
"""Unit tests for SchemaConverter"""
import unittest

from schema_introspector import (
    SchemaConverter, column_to_property, is_generated_column, parse_enum_values
)
from seed_utils import ColumnMeta


def col(name, data_type, column_type=None, extra="", nullable="NO", char_len=None, default=None):
    return (name, data_type, nullable, column_type or data_type, "", extra, char_len, None, None, default)


class MockConnection:
    """Mock database connection answering information_schema queries"""

    def __init__(self, tables, columns, fks):
        self.tables = tables
        self.columns = columns
        self.fks = fks
        self.queries = []

    def cursor(self):
        return MockCursor(self)


class MockCursor:
    """Mock database cursor for testing"""

    def __init__(self, conn):
        self.conn = conn
        self.result = []

    def execute(self, query, params=None):
        self.conn.queries.append((query, params))
        if "information_schema.TABLES" in query:
            self.result = [(t,) for t in self.conn.tables.get(params[0], [])]
        elif "information_schema.COLUMNS" in query:
            self.result = self.conn.columns.get(params, [])
        elif "KEY_COLUMN_USAGE" in query:
            self.result = self.conn.fks.get(params[0], [])
        else:
            self.result = []

    def fetchall(self):
        return self.result

    def fetchone(self):
        return self.result[0] if self.result else None


class TestColumnMapping(unittest.TestCase):
    """Test column type to JSON-Schema property mapping"""

    def meta(self, *args, **kwargs):
        return ColumnMeta(*col(*args, **kwargs))

    def test_basic_types(self):
        """Test the common MySQL types"""
        self.assertEqual(column_to_property(self.meta("n", "int")), {"type": "integer"})
        self.assertEqual(column_to_property(self.meta("n", "decimal", "decimal(10,2)")), {"type": "number"})
        self.assertEqual(column_to_property(self.meta("n", "varchar", "varchar(20)")), {"type": "string"})
        self.assertEqual(column_to_property(self.meta("n", "tinyint", "tinyint(1)")), {"type": "boolean"})
        self.assertEqual(column_to_property(self.meta("n", "tinyint", "tinyint(4)")), {"type": "integer"})
        self.assertEqual(column_to_property(self.meta("n", "json")), {"type": "object"})

    def test_formats(self):
        """Test uuid and date-time formats"""
        self.assertEqual(column_to_property(self.meta("id", "char", "char(36)", char_len=36)),
                         {"type": "string", "format": "uuid"})
        self.assertEqual(column_to_property(self.meta("on", "date")),
                         {"type": "string", "format": "date"})
        self.assertEqual(column_to_property(self.meta("at", "timestamp")),
                         {"type": "string", "format": "date-time"})

    def test_enum(self):
        """Test enum values are parsed, including escaped quotes"""
        prop = column_to_property(self.meta("s", "enum", "enum('new','it''s')"))
        self.assertEqual(prop, {"type": "string", "enum": ["new", "it's"]})
        self.assertEqual(parse_enum_values(None), [])

    def test_generated_columns(self):
        """Test auto_increment and generated columns are flagged"""
        self.assertTrue(is_generated_column(self.meta("id", "int", extra="auto_increment")))
        self.assertTrue(is_generated_column(self.meta("x", "int", extra="STORED GENERATED")))
        self.assertFalse(is_generated_column(self.meta("t", "timestamp", extra="DEFAULT_GENERATED")))
        self.assertTrue(column_to_property(self.meta("id", "int", extra="auto_increment"))["isGenerated"])


class TestSchemaConverter(unittest.TestCase):
    """Test catalog conversion"""

    def setUp(self):
        self.conn = MockConnection(
            tables={"shop": ["customers", "orders", "audit_log"]},
            columns={
                ("shop", "customers"): [
                    col("id", "char", "char(36)", char_len=36),
                    col("name", "varchar", "varchar(50)"),
                ],
                ("shop", "orders"): [
                    col("id", "int", extra="auto_increment"),
                    col("customer_id", "char", "char(36)", char_len=36),
                    col("user_id", "char", "char(36)", char_len=36, nullable="YES"),
                    col("status", "enum", "enum('open','closed')", default="open"),
                ],
                ("shop", "audit_log"): [col("id", "int")],
            },
            fks={"shop": [
                ("fk_orders_customer", "shop", "orders", "customer_id", "shop", "customers", "id"),
                ("fk_orders_user", "shop", "orders", "user_id", "auth", "users", "id"),
            ]},
        )

    def test_convert_documents(self):
        """Test documents carry identity, types and foreign references"""
        docs = SchemaConverter(self.conn, ["shop"], exclude=["audit_*"]).convert()
        self.assertEqual([d["title"] for d in docs], ["shop.customers", "shop.orders"])
        orders = docs[1]
        self.assertEqual(orders["$id"], "http://example.com/schemas/shop/orders.json")
        props = orders["properties"]
        self.assertTrue(props["id"]["isGenerated"])
        self.assertEqual(props["customer_id"]["foreignTable"], "shop.customers")
        self.assertEqual(props["customer_id"]["foreignColumn"], "id")
        self.assertEqual(props["user_id"]["foreignTable"], "auth.users")
        self.assertEqual(props["status"]["enum"], ["open", "closed"])
        self.assertEqual(orders["required"], ["customer_id"])

    def test_include_filter(self):
        """Test include globs match bare or qualified names"""
        docs = SchemaConverter(self.conn, ["shop"], include=["shop.cust*"]).convert()
        self.assertEqual([d["title"] for d in docs], ["shop.customers"])

    def test_base_url(self):
        """Test a custom $id prefix"""
        docs = SchemaConverter(self.conn, ["shop"], include=["customers"], base_url="https://x.test/s/").convert()
        self.assertEqual(docs[0]["$id"], "https://x.test/s/shop/customers.json")


if __name__ == "__main__":
    unittest.main()
