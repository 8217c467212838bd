"""
VideoStitch backend: collaborative clip collection, proxy generation,
chronological ordering and export planning.
"""

__version__ = "0.1.0"
