"""Tokenizer-related exceptions."""


class TokenCountError(Exception):
    """Token counting failed in the underlying tokenizer."""
