from .list import List
from .relationships import ColumnSpec, Relationship, UIElement
from .schema import SchemaBuilder

__all__ = ["List", "ColumnSpec", "Relationship", "UIElement", "SchemaBuilder"]
