"""Use-case layer for configuration workflows.

Each module coordinates domain objects and ports without performing engine
or store I/O directly, preserving MVVM + Hexagonal boundaries.
"""
