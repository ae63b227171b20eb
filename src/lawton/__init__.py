"""Chunking, embedding and metadata-filtered retrieval of instructional content."""

__version__ = "0.1.0"
