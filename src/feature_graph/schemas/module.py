"""
Feature Graph Module Schema

Modules group features. Only their cross-module declarations matter to the
engine: they document which feature-level links may cross module boundaries.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class IntegrationPoint(BaseModel):
    """A documented feature-to-feature link across two modules."""

    from_feature: str = Field(..., alias="fromFeature")
    to_feature: str = Field(..., alias="toFeature")

    class Config:
        populate_by_name = True
        frozen = True

    def connects(self, feature_a: str, feature_b: str) -> bool:
        """Check if this point links the two features in either direction."""
        return (self.from_feature, self.to_feature) in (
            (feature_a, feature_b),
            (feature_b, feature_a),
        )


class ModuleRelationship(BaseModel):
    """A module-level relationship declaration."""

    module_id: str = Field(..., alias="moduleId")
    relationship: str = Field(default="related")
    integration_points: List[IntegrationPoint] = Field(
        default_factory=list,
        alias="integrationPoints",
    )

    class Config:
        populate_by_name = True
        frozen = True


class Module(BaseModel):
    """A group of features (theme or initiative)."""

    id: str = Field(..., examples=["MOD-001"])
    name: str = Field(default="")
    features: List[str] = Field(default_factory=list)
    related_modules: List[ModuleRelationship] = Field(
        default_factory=list,
        alias="relatedModules",
    )

    class Config:
        populate_by_name = True
        frozen = True

    def relationship_to(self, module_id: str) -> Optional[ModuleRelationship]:
        """Get the declared relationship to another module, if any."""
        for rel in self.related_modules:
            if rel.module_id == module_id:
                return rel
        return None
