"""Reclaim data models."""

from reclaim.models.category import CATEGORIES, Category, CategoryId, SafetyLevel
from reclaim.models.scan_result import CleanableItem, ScanResult, ScanSummary
from reclaim.models.clean_result import CleanResult, CleanSummary, clean_items
from reclaim.models.scanner import InvalidScanOptions, ScanOptions, Scanner

__all__ = [
    "CATEGORIES",
    "Category",
    "CategoryId",
    "CleanResult",
    "CleanSummary",
    "CleanableItem",
    "InvalidScanOptions",
    "SafetyLevel",
    "ScanOptions",
    "ScanResult",
    "ScanSummary",
    "Scanner",
    "clean_items",
]
