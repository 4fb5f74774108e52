"""Ephemeral key/value store layer."""

from celeiro.transient.base import KeyValueStore
from celeiro.transient.factories import create_store
from celeiro.transient.memory import MemoryStore

__all__ = ["KeyValueStore", "MemoryStore", "create_store"]
