"""Pytest configuration for the dispatch job log tests."""

# Ensure project root is on sys.path for imports during pytest collection
import os
import sys

ROOT = os.path.dirname(os.path.abspath(__file__))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# If DJANGO_SETTINGS_MODULE isn't set by environment, default to dispatch_site.settings
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "dispatch_site.settings")
