"""Flatten a source tree into a tree diagram, a content dump and a summary for LLMs."""

__version__ = "0.1.0"
