"""Application composition layer.

``bootstrap`` wires adapters, use cases and view models by explicit
constructor injection; ``config`` resolves paths and secrets from the
environment.
"""
