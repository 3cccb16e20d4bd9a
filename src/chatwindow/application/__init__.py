"""Application layer."""

from chatwindow.application.context_assembler import ContextAssembler

__all__ = ["ContextAssembler"]
