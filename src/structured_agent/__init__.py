"""Structured-output agent with function calling and a vector store retriever."""

__version__ = "0.1.0"
