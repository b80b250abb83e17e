"""ViewModel package for UI state and command surfaces.

Call context:
    ``chocogui/app/bootstrap.py`` builds the view models and hands them to
    whatever toolkit renders them.

Dependencies:
    Modules in this package depend on domain types and the command registry
    only. I/O adapters and use-case orchestration remain outside.

Responsibilities:
    - Expose display rows and command intent methods.
    - Keep MVVM boundaries explicit by avoiding engine or persistence logic.
"""
