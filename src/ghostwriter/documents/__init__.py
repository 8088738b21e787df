"""Document tree, addressing and range primitives."""

from .model import Mark, MarkType, Node, NodeType
from .ranges import DocRange, PositionCheck, validate_positions

__all__ = ["DocRange", "Mark", "MarkType", "Node", "NodeType", "PositionCheck", "validate_positions"]
