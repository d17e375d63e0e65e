"""
py-backdrop: endless procedurally generated terrain for scrolling backdrops.
"""

__version__ = "0.1.0"
