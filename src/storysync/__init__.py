"""storysync - client-side synchronization core for a read-it-later library."""

__version__ = "0.1.0"
