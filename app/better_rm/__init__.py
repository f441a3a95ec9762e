"""better-rm - a recoverable replacement for rm.

Files are moved into a compressed, self-cleaning recycle bin instead of
being unlinked, unless permanent deletion is requested.
"""

__version__ = "1.0.0"
