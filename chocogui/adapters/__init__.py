"""Adapter package for external I/O implementations.

Purpose:
    Collect concrete implementations for domain ports: the secret codec, the
    embedded document store, the engine configuration file and an in-memory
    engine double.

Dependencies:
    ``secret_codec`` depends on ``cryptography``; the store and engine file
    adapters use ``sqlite3`` and ``xml.etree`` from the standard library.

Call context:
    Imported by ``chocogui.app.bootstrap`` for runtime wiring and by tests
    (for the mock engine and on-disk behavior verification).
"""
