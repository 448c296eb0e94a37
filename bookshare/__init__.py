"""
BookShare listing service.

A peer-to-peer book-exchange backend with a two-tier read-through cache in
front of the listing queries.
"""

__version__ = "1.0.0"
