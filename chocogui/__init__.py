"""Configuration synchronization core of a desktop package-manager client."""

__version__ = "0.1.0"
