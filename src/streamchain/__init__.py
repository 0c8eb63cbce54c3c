"""
streamchain: ordered concatenation of push-style streams.

Appends streams, literal values and lazily-resolved producers to a
session and drains them one at a time into a single output stream,
relaying pause/resume to whichever producer is active.
"""

__version__ = "0.1.0"
