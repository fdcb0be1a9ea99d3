#!/usr/bin/env python3
"""MySQL backend: existing-key lookups, fixture inserts and purges"""
import sys
from contextlib import contextmanager
from getpass import getpass

import pymysql

from seed_errors import ReferenceLookupError
from seed_utils import debug_print, encode_insert_value, quote_identifier, quote_table


def connect_mysql(settings, ask_pass=False):
    """
    Open an autocommit connection from the "mysql" config section.

    Exits with status 1 when the server cannot be reached.
    """
    pwd = settings.get("password")
    if ask_pass and not pwd:
        pwd = getpass("Password for {0}@{1}: ".format(settings.get("user"), settings.get("host")))
    try:
        return pymysql.connect(host=settings["host"], port=int(settings.get("port", 3306)),
                               user=settings.get("user"), password=pwd or "",
                               database=settings.get("database"),
                               charset=settings.get("charset", "utf8mb4"), autocommit=True)
    except pymysql.MySQLError as e:
        print("Error: Failed to connect to MySQL: {0}".format(e), file=sys.stderr)
        sys.exit(1)


class MysqlFixtureBackend(object):
    """
    Executes fixture statements against a live connection.

    Every statement runs on its own in autocommit mode, so one failing insert
    does not undo the others.
    """

    def __init__(self, conn):
        self.conn = conn

    def fetch_keys(self, table, offset, limit, key="id"):
        """
        Key values of existing rows, ordered by key.

        Returns: list of {key: value}

        Raises:
            ReferenceLookupError: the query failed
        """
        query = "SELECT {0} FROM {1} ORDER BY {0} LIMIT %s OFFSET %s".format(
            quote_identifier(key), quote_table(table))
        try:
            cur = self.conn.cursor()
            cur.execute(query, (int(limit), int(offset)))
            rows = [{key: r[0]} for r in cur.fetchall()]
        except pymysql.MySQLError as e:
            raise ReferenceLookupError(table, e)
        debug_print("Fetched data from {0} using offset {1}: {2}".format(table, offset, rows))
        return rows

    def insert(self, table, record):
        columns = list(record)
        if columns:
            query = "INSERT INTO {0} ({1}) VALUES ({2})".format(
                quote_table(table), ", ".join(quote_identifier(c) for c in columns),
                ", ".join(["%s"] * len(columns)))
        else:
            query = "INSERT INTO {0} () VALUES ()".format(quote_table(table))
        values = [encode_insert_value(record[c]) for c in columns]
        debug_print("Executing query: {0} with values: {1}".format(query, values))
        cur = self.conn.cursor()
        cur.execute(query, values or None)

    def delete_all(self, table):
        cur = self.conn.cursor()
        cur.execute("DELETE FROM {0}".format(quote_table(table)))

    @contextmanager
    def foreign_key_checks_disabled(self):
        cur = self.conn.cursor()
        cur.execute("SET FOREIGN_KEY_CHECKS=0")
        try:
            yield
        finally:
            cur.execute("SET FOREIGN_KEY_CHECKS=1")
