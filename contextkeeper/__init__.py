"""contextkeeper -- a context store with chunking, embedding and ranked retrieval."""

__version__ = "0.1.0"
