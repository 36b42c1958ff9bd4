"""
Schema Module

Schema resolution (declared and implicit foreign keys) and the schema
context text handed to the AI collaborator.
"""

from querypilot.schema.formatter import format_schema_context
from querypilot.schema.resolver import SchemaResolver

__all__ = ["SchemaResolver", "format_schema_context"]
