"""
Shared Kernel Module
====================

Generic infrastructure used by every bounded context: structured logging,
request middleware and the global exception handler.

No generation logic belongs here.
"""

__version__ = "1.0.0"
