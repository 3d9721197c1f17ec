"""
Client for the relational store.

Provides pooled async access to the TCRD Postgres database.
"""

from tcrd_core.clients.store import StoreClient, StoreError, StoreTimeoutError

__all__ = ["StoreClient", "StoreError", "StoreTimeoutError"]
