"""Persistence layer: schema, migrations and the async DBM."""

from .dbm import DBM, fetch_all, fetch_one

__all__ = ["DBM", "fetch_all", "fetch_one"]
