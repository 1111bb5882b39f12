"""
Reqterm - Interactive HTTP Client

A TUI application for composing, sending and inspecting HTTP requests
with per-content-type formatting and search of response bodies.

Copyright (c) 2025 Artel Team
Licensed under Artel Team Non-Commercial License
"""

__version__ = "0.1.0"
