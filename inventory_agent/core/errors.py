"""
Error taxonomy.

Nothing here is fatal to a report cycle. The types only let callers tell
apart which stage failed:
CollectionError comes from a local lookup such as hostname or distro.
EncodingError comes from the serialize, compress, encode pipeline.
TransportError comes from the remote attribute write.
"""


class InventoryError(Exception):
    """Base class for all inventory agent exceptions."""


class CollectionError(InventoryError):
    """Raised when a local inventory lookup fails."""


class EncodingError(InventoryError):
    """Raised when a structured value cannot be serialized for publishing."""


class TransportError(InventoryError):
    """Raised when an attribute write to the remote store fails."""
