"""
Decentralized area coverage for drone swarms.
"""

__version__ = "0.3.0"
