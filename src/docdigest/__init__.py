"""docdigest -- summarize batches of mixed-format documents with a local model."""

__version__ = "0.1.0"
