"""
Topic Explorer.

Live, hierarchical view of every topic published on a Zenoh network.
"""

__version__ = "0.1.0"
