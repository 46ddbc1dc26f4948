"""
Form Logic Engine Package

Evaluates declarative questionnaires against a live response.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Widgets, screens or navigation
    - Persistence of responses
    - Network transport (apart from loading translation files)

A questionnaire definition goes in, answer updates go in,
immutable state snapshots come out.

Layers:
    expressions / interpreter   -> the rule language
    engine                      -> calculated values, visibility,
                                   validation, extraction
    state                       -> the reactive session container
"""

__version__ = "0.1.0"
