"""Scanning, filtering and cleaning machinery shared by all scanners."""
