"""
Feature Graph Feature Schema

Defines the Feature record and the two edge types it declares:
execution dependencies (scheduling) and semantic relationships (architecture).
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class FeatureStatus(str, Enum):
    """Feature lifecycle status."""

    DRAFT = "draft"
    READY = "ready"
    IN_PROGRESS = "in-progress"
    IN_REVIEW = "in-review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    """Feature priority (used only for ranking recommendations)."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more urgent."""
        return {
            Priority.CRITICAL: 4,
            Priority.HIGH: 3,
            Priority.MEDIUM: 2,
            Priority.LOW: 1,
        }[self]


class DependencyType(str, Enum):
    """Execution dependency types."""

    BLOCKS = "blocks"
    REQUIRES = "requires"
    RELATED = "related"  # Informational, never constrains ordering


# Edge types that constrain work order in the scheduling graph
HARD_DEPENDENCY_TYPES = frozenset({DependencyType.BLOCKS, DependencyType.REQUIRES})


class RelationshipType(str, Enum):
    """Semantic relationship types between features."""

    # Ordering
    DEPENDS_ON = "depends-on"
    BLOCKS = "blocks"

    # Data flow
    PROVIDES_DATA_TO = "provides-data-to"
    CONSUMES_DATA_FROM = "consumes-data-from"

    # Descriptive
    OVERLAPS_WITH = "overlaps-with"
    COMPLEMENTS = "complements"
    SUPERSEDES = "supersedes"
    INTEGRATES_WITH = "integrates-with"
    EXTENDS = "extends"
    REPLACED_BY = "replaced-by"


class ExecutionDependency(BaseModel):
    """A scheduling edge pointing at a feature this one waits on."""

    feature_id: str = Field(
        ...,
        alias="featureId",
        description="Feature this one depends on",
        examples=["FEAT-001"],
    )

    type: DependencyType = Field(
        ...,
        description="blocks/requires are hard edges, related is informational",
    )

    reason: Optional[str] = Field(
        default=None,
        description="Why the dependency exists",
    )

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def is_hard(self) -> bool:
        """Check if this edge constrains work order."""
        return self.type in HARD_DEPENDENCY_TYPES


class SemanticRelationship(BaseModel):
    """A typed architectural edge to another feature."""

    feature_id: str = Field(
        ...,
        alias="featureId",
        description="Related feature",
        examples=["FEAT-002"],
    )

    relationship: RelationshipType = Field(
        ...,
        description="Relationship type",
    )

    description: str = Field(
        default="",
        description="How the two features relate",
    )

    class Config:
        populate_by_name = True
        frozen = True

    def get_inverse_type(self) -> Optional[RelationshipType]:
        """Get the inverse relationship type if known."""
        return INVERSE_RELATIONSHIPS.get(self.relationship)


INVERSE_RELATIONSHIPS: Dict[RelationshipType, RelationshipType] = {
    RelationshipType.DEPENDS_ON: RelationshipType.BLOCKS,
    RelationshipType.BLOCKS: RelationshipType.DEPENDS_ON,
    RelationshipType.PROVIDES_DATA_TO: RelationshipType.CONSUMES_DATA_FROM,
    RelationshipType.CONSUMES_DATA_FROM: RelationshipType.PROVIDES_DATA_TO,
}

SYMMETRIC_RELATIONSHIPS = frozenset(
    {RelationshipType.INTEGRATES_WITH, RelationshipType.COMPLEMENTS}
)

ORDERING_RELATIONSHIPS = frozenset(
    {RelationshipType.DEPENDS_ON, RelationshipType.BLOCKS}
)


class ConsumedData(BaseModel):
    """Data a feature reads, optionally from a named source feature."""

    source_feature_id: Optional[str] = Field(
        default=None,
        alias="sourceFeatureId",
    )
    data_type: str = Field(..., alias="dataType")
    required: Optional[bool] = None

    class Config:
        populate_by_name = True
        frozen = True


class ProducedData(BaseModel):
    """Data a feature emits, optionally naming its consumers."""

    data_type: str = Field(..., alias="dataType")
    consumer_feature_ids: List[str] = Field(
        default_factory=list,
        alias="consumerFeatureIds",
    )

    class Config:
        populate_by_name = True
        frozen = True


class DataContract(BaseModel):
    """What a feature consumes and produces."""

    consumes: List[ConsumedData] = Field(default_factory=list)
    produces: List[ProducedData] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def is_empty(self) -> bool:
        return not self.consumes and not self.produces

    def produces_type(self, data_type: str) -> bool:
        return any(p.data_type == data_type for p in self.produces)

    def consumes_type_from(self, source_feature_id: str, data_type: str) -> bool:
        return any(
            c.source_feature_id == source_feature_id and c.data_type == data_type
            for c in self.consumes
        )


class Feature(BaseModel):
    """
    A unit of product work.

    Records are read-only snapshots: the analysis engine never mutates them.
    Edge lists may point at unknown ids or at the feature itself; those are
    reported by the validators rather than rejected here.
    """

    id: str = Field(
        ...,
        description="Unique feature identifier",
        examples=["FEAT-001"],
    )

    name: str = Field(default="", description="Display name")
    description: str = Field(default="", description="Brief description")

    module_id: str = Field(
        default="",
        alias="moduleId",
        description="Owning module identifier",
        examples=["MOD-001"],
    )

    status: FeatureStatus = Field(default=FeatureStatus.DRAFT)
    priority: Priority = Field(default=Priority.MEDIUM)

    capability_tags: List[str] = Field(default_factory=list, alias="capabilityTags")
    target_users: List[str] = Field(default_factory=list, alias="targetUsers")

    # PRD content
    problem_statement: str = Field(default="", alias="problemStatement")
    goals: List[str] = Field(default_factory=list)
    in_scope: List[str] = Field(default_factory=list, alias="inScope")
    out_of_scope: List[str] = Field(default_factory=list, alias="outOfScope")

    # Edges
    execution_dependencies: List[ExecutionDependency] = Field(
        default_factory=list,
        alias="executionDependencies",
    )
    semantic_relationships: List[SemanticRelationship] = Field(
        default_factory=list,
        alias="semanticRelationships",
    )

    data_contract: Optional[DataContract] = Field(default=None, alias="dataContract")

    class Config:
        populate_by_name = True
        frozen = True
        json_schema_extra = {
            "examples": [
                {
                    "id": "FEAT-002",
                    "name": "Checkout",
                    "moduleId": "MOD-001",
                    "status": "ready",
                    "priority": "high",
                    "capabilityTags": ["payments", "cart"],
                    "problemStatement": "Customers cannot pay for items in their cart",
                    "inScope": ["card payments"],
                    "outOfScope": ["invoicing"],
                    "executionDependencies": [
                        {"featureId": "FEAT-001", "type": "requires"}
                    ],
                    "semanticRelationships": [
                        {
                            "featureId": "FEAT-001",
                            "relationship": "consumes-data-from",
                            "description": "Reads cart contents",
                        }
                    ],
                }
            ]
        }

    @model_validator(mode="before")
    @classmethod
    def normalize_legacy_contract(cls, data: Any) -> Any:
        """Lift fields from the nested PRD contract shape.

        Older contract files nest problem statement, goals and scope under
        ``prd`` and use ``featureDependencies``/``relatedFeatures`` for edges.
        """
        if not isinstance(data, dict):
            return data

        data = dict(data)
        prd = data.pop("prd", None)
        if isinstance(prd, dict):
            scope = prd.get("scope") or {}
            data.setdefault("problemStatement", prd.get("problemStatement", ""))
            data.setdefault("goals", prd.get("goals") or [])
            data.setdefault("inScope", scope.get("inScope") or [])
            data.setdefault("outOfScope", scope.get("outOfScope") or [])

        if "featureDependencies" in data:
            data.setdefault("executionDependencies", data.pop("featureDependencies") or [])
        if "relatedFeatures" in data:
            data.setdefault("semanticRelationships", data.pop("relatedFeatures") or [])

        contract = data.get("dataContract")
        if isinstance(contract, dict):
            data["dataContract"] = {
                "consumes": [
                    _rename(c, "sourceFeature", "sourceFeatureId")
                    for c in contract.get("consumes") or []
                ],
                "produces": [
                    _rename(p, "consumers", "consumerFeatureIds")
                    for p in contract.get("produces") or []
                ],
            }

        # Drop nulls so field defaults apply
        return {k: v for k, v in data.items() if v is not None}

    @property
    def is_completed(self) -> bool:
        return self.status == FeatureStatus.COMPLETED

    @property
    def hard_dependency_ids(self) -> List[str]:
        """Ids of blocks/requires dependencies, de-duplicated in declared order."""
        seen: List[str] = []
        for dep in self.execution_dependencies:
            if dep.is_hard and dep.feature_id not in seen:
                seen.append(dep.feature_id)
        return seen

    @property
    def has_data_contract(self) -> bool:
        return self.data_contract is not None and not self.data_contract.is_empty


def _rename(entry: Any, old: str, new: str) -> Any:
    if isinstance(entry, dict) and old in entry and new not in entry:
        entry = dict(entry)
        entry[new] = entry.pop(old)
    return entry
