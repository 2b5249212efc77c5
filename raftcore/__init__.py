"""In-memory building blocks for Raft consensus: log store, log cache, snapshot store, peers files, transport, observers and progress reporting."""

__version__ = "0.1.0"