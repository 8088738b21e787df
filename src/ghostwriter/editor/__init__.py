"""Headless editor: state, transactions, block ids and the ghost edit layer."""

from .editor import CommandChain, Dispatch, Editor
from .transaction import EditorState, Selection, Transaction

__all__ = ["CommandChain", "Dispatch", "Editor", "EditorState", "Selection", "Transaction"]
