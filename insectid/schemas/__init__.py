from .custom_field import CustomFieldCreate, CustomFieldDefinition, FieldType
from .gbif import GbifNameUsage
from .identification import Confidence, Draft, IdentificationBase, IdentificationRecord
from .taxon import Taxon

__all__ = [
    # Taxonomy
    "Taxon",
    "GbifNameUsage",
    # Custom fields
    "FieldType",
    "CustomFieldCreate",
    "CustomFieldDefinition",
    # Identifications
    "Confidence",
    "IdentificationBase",
    "IdentificationRecord",
    "Draft",
]
