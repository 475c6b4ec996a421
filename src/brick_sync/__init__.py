"""
brick-sync

Copies firmware images off a removable volume, at most once per content.

Author: brick-sync Project
License: MIT
"""

__version__ = "0.1.0"
