#!/usr/bin/env python3
"""Scalar value provider backed by Faker"""
from datetime import timezone

from faker import Faker

RECENT_DAYS = 30


class ValueProvider(object):
    """
    Produces random scalar values for synthesized rows.

    Handles:
    - Plain strings, integers, numbers and booleans
    - UUIDs, recent dates and recent timestamps for formatted strings
    - Uniform picks from enum members

    Any object exposing the same methods can replace it.
    """

    def __init__(self, seed=None, locale=None, max_integer=10000):
        """
        Args:
            seed: Seed for reproducible output (None for a random run)
            locale: Faker locale, e.g. "en_US"
            max_integer: Upper bound for integer() and number()
        """
        self.fake = Faker(locale) if locale else Faker()
        if seed is not None:
            self.fake.seed_instance(seed)
        self.max_integer = max_integer

    def string(self):
        return self.fake.word()

    def uuid(self):
        return self.fake.uuid4()

    def recent_timestamp(self):
        """ISO 8601 UTC timestamp within the last RECENT_DAYS days."""
        moment = self.fake.date_time_between(
            start_date="-{0}d".format(RECENT_DAYS), end_date="now", tzinfo=timezone.utc)
        return moment.isoformat(timespec="seconds")

    def recent_date(self):
        """ISO 8601 date within the last RECENT_DAYS days."""
        return self.fake.date_between(start_date="-{0}d".format(RECENT_DAYS), end_date="today").isoformat()

    def integer(self):
        return self.fake.random_int(min=0, max=self.max_integer)

    def number(self):
        return self.fake.pyfloat(right_digits=2, min_value=0, max_value=self.max_integer)

    def boolean(self):
        return self.fake.pybool()

    def pick_one_of(self, values):
        values = list(values)
        if not values:
            return None
        return values[self.fake.random_int(min=0, max=len(values) - 1)]
