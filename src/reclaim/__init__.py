"""Reclaim: scan for reclaimable disk space and clean it up."""

__version__ = "0.1.0"
