"""
brick-sync Core Module

Pass orchestration and the forever loop.

Author: brick-sync Project
License: MIT
"""

from .sync_engine import SyncEngine, SyncResult, SyncStatus, PassResult

__all__ = ['SyncEngine', 'SyncResult', 'SyncStatus', 'PassResult']
