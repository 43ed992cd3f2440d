"""Domain layer: file value object, variant definitions, and exceptions.

No dependencies on infrastructure. Used by application and infrastructure
layers.
"""
