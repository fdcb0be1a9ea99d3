#!/usr/bin/env python3
"""Error taxonomy for fixture seeding"""


class SeedError(Exception):
    """Base class for fixture seeding failures"""


class ConfigError(SeedError):
    """Configuration file is missing or invalid"""


class SchemaError(SeedError):
    """A schema document has a shape that cannot be interpreted"""


class MissingIdentityError(SchemaError):
    """A schema has neither a title nor an $id to key it in the graph"""

    def __init__(self, schema):
        self.schema = schema
        hint = ", ".join(sorted(schema)) if isinstance(schema, dict) else type(schema).__name__
        super(MissingIdentityError, self).__init__(
            "Schema has no title or $id (keys: {0})".format(hint))


class CycleError(SeedError):
    """The table dependency graph contains a cycle.

    ``path`` lists the tables on the cycle, starting and ending with the
    same table.
    """

    def __init__(self, path):
        self.path = list(path)
        super(CycleError, self).__init__(
            "Cycle detected involving tables: {0}".format(" -> ".join(self.path)))


class UnresolvedReferenceWarning(UserWarning):
    """A foreign reference had nothing to point at; the field was left unset

    ``generated_key`` marks references whose parent key is assigned by the
    database on insert (AUTO_INCREMENT or generated columns).
    """

    def __init__(self, table, field, target, reason=None, generated_key=False):
        self.table = table
        self.field = field
        self.target = target
        self.reason = reason
        self.generated_key = generated_key
        message = "{0}.{1} -> {2}: left unset".format(table, field, target)
        if reason:
            message += " ({0})".format(reason)
        super(UnresolvedReferenceWarning, self).__init__(message)


class ReferenceLookupError(SeedError):
    """Reading existing keys from a protected table failed"""

    def __init__(self, table, cause):
        self.table = table
        self.cause = cause
        super(ReferenceLookupError, self).__init__(
            "Failed to fetch keys from {0}: {1}".format(table, cause))


class InsertionError(SeedError):
    """A single fixture row could not be inserted"""

    def __init__(self, table, record, cause):
        self.table = table
        self.record = record
        self.cause = cause
        super(InsertionError, self).__init__(
            "Failed to insert into {0}: {1} (record: {2})".format(table, cause, record))


class PurgeError(SeedError):
    """Clearing previously seeded rows from a table failed"""

    def __init__(self, table, cause):
        self.table = table
        self.cause = cause
        super(PurgeError, self).__init__(
            "Failed to clear {0}: {1}".format(table, cause))
