"""
Feature Graph Schemas

Pydantic models for the records the analysis engine reads.
"""

from .feature import (
    HARD_DEPENDENCY_TYPES,
    INVERSE_RELATIONSHIPS,
    ORDERING_RELATIONSHIPS,
    SYMMETRIC_RELATIONSHIPS,
    ConsumedData,
    DataContract,
    DependencyType,
    ExecutionDependency,
    Feature,
    FeatureStatus,
    Priority,
    ProducedData,
    RelationshipType,
    SemanticRelationship,
)
from .module import IntegrationPoint, Module, ModuleRelationship

__all__ = [
    # Feature
    "Feature",
    "FeatureStatus",
    "Priority",
    # Edges
    "DependencyType",
    "ExecutionDependency",
    "RelationshipType",
    "SemanticRelationship",
    "HARD_DEPENDENCY_TYPES",
    "INVERSE_RELATIONSHIPS",
    "ORDERING_RELATIONSHIPS",
    "SYMMETRIC_RELATIONSHIPS",
    # Data contracts
    "ConsumedData",
    "DataContract",
    "ProducedData",
    # Modules
    "IntegrationPoint",
    "Module",
    "ModuleRelationship",
]
