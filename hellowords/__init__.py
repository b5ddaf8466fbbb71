# -*- coding: utf-8 -*-
"""HelloWords package.

Modules:
    crypto:     Key derivation, entry codec and content hashing.
    db:         SQLite schema + async data access + similarity match.
    embeddings: Fail-soft client for the embedding provider.
    logic:      App logic that composes db + crypto + embeddings.
    pending:    Reconciliation of entries composed before sign-in.
    drafts:     Local mirroring of the unsaved composition.
    auth:       Authentication collaborator (local accounts).
    location:   Reverse geocoding for location-enabled saves.
    storage:    Local durable key-value slots.
    config:     JSON configuration on disk.
    ui:         Textual-based UI (screens, modals, app).
"""

__all__ = [
    "auth",
    "config",
    "crypto",
    "db",
    "drafts",
    "embeddings",
    "location",
    "logic",
    "pending",
    "storage",
    "ui",
]
