"""
tokenledger — fungible-token account & allowance bookkeeping over a single-key
get/put world-state store.

Only lightweight metadata is exposed at import time. Import the operations from
`tokenledger.contract` and the store backends from `tokenledger.db`.
"""

from .version import __version__, git_describe

__all__ = ["__version__", "git_describe"]
