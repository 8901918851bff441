"""
Metadata model module.

Only the data classes are imported here; ``ModelBuilder`` lives in
``sdlgen.model.builder`` because it depends on the parser, which in turn
uses ``GroupKind``.
"""

from .metadata import (
    Availability,
    Field,
    Group,
    GroupKind,
    GroupValue,
    Hint,
    Model,
    ModuleModel,
    Property,
    PropertyType,
    Struct,
)

__all__ = [
    "Availability",
    "Field",
    "Group",
    "GroupKind",
    "GroupValue",
    "Hint",
    "Model",
    "ModuleModel",
    "Property",
    "PropertyType",
    "Struct",
]
