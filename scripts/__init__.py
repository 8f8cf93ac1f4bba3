"""Scripts package initialization.

Provides a namespace for executable helper modules (e.g., backend.py) and
test utilities under `scripts/tests`.
"""

from __future__ import annotations

__all__: list[str] = []
