"""docengine: versioned documents with AI-assisted generation and publication."""

__version__ = "0.1.0"
