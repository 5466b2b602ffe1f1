"""Synchronization of a live backend into the local sync cache."""
