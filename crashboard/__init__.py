"""
CrashBoard availability: free-slot finder for the dashboard availability tile.
"""

__version__ = "0.1.0"
