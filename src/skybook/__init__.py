"""Skybook booking-site frontend.

Provides the airport/city autocomplete field controller, the location
suggestion sources it searches, and a Textual flight search form built
on top of them.
"""

from __future__ import annotations

__version__ = "0.3.0"
