"""
Session and event tracking with windowed analytics for the seller dashboard.
"""

__version__ = "0.1.0"
