"""
Relationship Graph Validator

Validates the semantic relationship graph of a feature set for:
- Missing and self references
- Circular depends-on/blocks chains
- Orphaned features
- Data contract consistency
- Module boundary documentation
- Asymmetric and mismatched relationships

Usage:
    from feature_graph.validation import validate_relationship_graph

    report = validate_relationship_graph(features, modules)
    if not report.valid:
        for issue in report.errors:
            print(issue.message)
"""

from typing import Dict, List, Optional, Sequence

from feature_graph.logging_config import get_logger
from feature_graph.schemas import (
    INVERSE_RELATIONSHIPS,
    ORDERING_RELATIONSHIPS,
    SYMMETRIC_RELATIONSHIPS,
    Feature,
    Module,
    RelationshipType,
)
from feature_graph.scheduling.graph import find_cycles
from feature_graph.validation.issues import (
    IssueCategory,
    IssueSeverity,
    ValidationIssue,
    ValidationReport,
    ValidationStatistics,
)

logger = get_logger(__name__)

FeatureIndex = Dict[str, Feature]


def _index_features(features: Sequence[Feature]) -> FeatureIndex:
    index: FeatureIndex = {}
    for feature in features:
        if feature.id in index:
            logger.warning(f"Duplicate feature id {feature.id}, keeping first record")
            continue
        index[feature.id] = feature
    return index


def _check_references(index: FeatureIndex) -> List[ValidationIssue]:
    """Dangling and self references."""
    issues = []

    for feature_id, feature in index.items():
        for rel in feature.semantic_relationships:
            if rel.feature_id == feature_id:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        category=IssueCategory.SELF_RELATIONSHIP,
                        feature_ids=[feature_id],
                        message=f"{feature_id} declares '{rel.relationship.value}' with itself",
                        recommendation="Remove the self-referencing relationship",
                    )
                )
            elif rel.feature_id not in index:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        category=IssueCategory.MISSING_REFERENCE,
                        feature_ids=[feature_id, rel.feature_id],
                        message=f"{feature_id} references non-existent feature: {rel.feature_id}",
                        recommendation=f"Remove reference or create {rel.feature_id}",
                    )
                )

    return issues


def _detect_ordering_cycles(index: FeatureIndex) -> List[List[str]]:
    """
    Cycles over depends-on/blocks edges, as "waits on" chains.

    "X depends-on Y" is the edge X -> Y; "X blocks Y" is Y -> X, so a
    depends-on declaration and its blocks inverse are one edge, not a cycle.
    Self-edges are reported separately.
    """
    adjacency: Dict[str, List[str]] = {feature_id: [] for feature_id in index}

    for feature_id, feature in index.items():
        for rel in feature.semantic_relationships:
            if rel.relationship not in ORDERING_RELATIONSHIPS or rel.feature_id == feature_id:
                continue
            if rel.relationship == RelationshipType.DEPENDS_ON:
                source, target = feature_id, rel.feature_id
            else:
                source, target = rel.feature_id, feature_id
            if source in adjacency and target not in adjacency[source]:
                adjacency[source].append(target)

    return find_cycles(adjacency)


def _check_data_contracts(index: FeatureIndex) -> List[ValidationIssue]:
    """Both sides of every declared data flow must exist and agree."""
    issues = []

    for feature_id, feature in index.items():
        contract = feature.data_contract
        if contract is None:
            continue

        for consumed in contract.consumes:
            source_id = consumed.source_feature_id
            if not source_id:
                continue

            source = index.get(source_id)
            if source is None:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        category=IssueCategory.DATA_CONTRACT,
                        feature_ids=[feature_id, source_id],
                        message=f"{feature_id} consumes data from non-existent feature: {source_id}",
                        recommendation=f"Either create {source_id} or update the data contract "
                        "to reference the correct source",
                    )
                )
            elif not (source.data_contract and source.data_contract.produces_type(consumed.data_type)):
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.WARNING,
                        category=IssueCategory.DATA_CONTRACT,
                        feature_ids=[feature_id, source_id],
                        message=f"{source_id} doesn't explicitly produce \"{consumed.data_type}\"",
                        recommendation=f"Update {source_id}'s data contract to list "
                        f"\"{consumed.data_type}\" in produces",
                    )
                )

        for produced in contract.produces:
            for consumer_id in produced.consumer_feature_ids:
                consumer = index.get(consumer_id)
                if consumer is None:
                    issues.append(
                        ValidationIssue(
                            severity=IssueSeverity.ERROR,
                            category=IssueCategory.DATA_CONTRACT,
                            feature_ids=[feature_id, consumer_id],
                            message=f"{feature_id} lists non-existent consumer: {consumer_id}",
                            recommendation=f"Remove {consumer_id} from consumers or create the feature",
                        )
                    )
                elif not (
                    consumer.data_contract
                    and consumer.data_contract.consumes_type_from(feature_id, produced.data_type)
                ):
                    issues.append(
                        ValidationIssue(
                            severity=IssueSeverity.WARNING,
                            category=IssueCategory.DATA_CONTRACT,
                            feature_ids=[feature_id, consumer_id],
                            message=f"{consumer_id} doesn't explicitly consume "
                            f"\"{produced.data_type}\" from {feature_id}",
                            recommendation=f"Update {consumer_id}'s data contract to list "
                            f"consumption of \"{produced.data_type}\"",
                        )
                    )

    return issues


def _check_module_boundaries(
    index: FeatureIndex, modules: Sequence[Module]
) -> List[ValidationIssue]:
    """Cross-module edges from a known module must be documented at module level."""
    issues = []
    module_index = {module.id: module for module in modules}

    for feature_id, feature in index.items():
        for rel in feature.semantic_relationships:
            other = index.get(rel.feature_id)
            if other is None or other.id == feature_id:
                continue
            if not feature.module_id or not other.module_id:
                continue
            if feature.module_id == other.module_id:
                continue
            if feature.module_id not in module_index:
                continue

            declared = []
            for source, target in ((feature.module_id, other.module_id), (other.module_id, feature.module_id)):
                module = module_index.get(source)
                relationship = module.relationship_to(target) if module else None
                if relationship is not None:
                    declared.append(relationship)

            if not declared:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.WARNING,
                        category=IssueCategory.MODULE_BOUNDARY,
                        feature_ids=[feature_id, other.id],
                        message=f"Cross-module relationship {feature_id} -> {other.id} "
                        "not documented at module level",
                        recommendation=f"Add a relatedModules entry in {feature.module_id} "
                        f"linking to {other.module_id}",
                    )
                )
            elif not any(
                point.connects(feature_id, other.id)
                for relationship in declared
                for point in relationship.integration_points
            ):
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.INFO,
                        category=IssueCategory.MODULE_BOUNDARY,
                        feature_ids=[feature_id, other.id],
                        message=f"Cross-module integration point not documented: "
                        f"{feature_id} <-> {other.id}",
                        recommendation=f"Add an integration point in {feature.module_id}'s relatedModules",
                    )
                )

    return issues


def _check_symmetry(index: FeatureIndex) -> List[ValidationIssue]:
    """Symmetric types need a reciprocal edge; paired types need their inverse."""
    issues = []

    for feature_id, feature in index.items():
        for rel in feature.semantic_relationships:
            other = index.get(rel.feature_id)
            if other is None or other.id == feature_id:
                continue

            reverse = [r for r in other.semantic_relationships if r.feature_id == feature_id]

            if rel.relationship in SYMMETRIC_RELATIONSHIPS:
                if not any(r.relationship == rel.relationship for r in reverse):
                    issues.append(
                        ValidationIssue(
                            severity=IssueSeverity.WARNING,
                            category=IssueCategory.ASYMMETRIC_RELATIONSHIP,
                            feature_ids=[feature_id, other.id],
                            message=f"{feature_id} {rel.relationship.value} {other.id} is not reciprocated",
                            recommendation=f"Add reciprocal {rel.relationship.value} entry in {other.id}",
                        )
                    )
                continue

            expected = INVERSE_RELATIONSHIPS.get(rel.relationship)
            if expected is None or not reverse:
                continue
            if not any(r.relationship == expected for r in reverse):
                found = ", ".join(r.relationship.value for r in reverse)
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.INFO,
                        category=IssueCategory.RELATIONSHIP_MISMATCH,
                        feature_ids=[feature_id, other.id],
                        message=f"Relationship mismatch: {feature_id} {rel.relationship.value} "
                        f"{other.id}, but {other.id} {found} {feature_id}",
                        recommendation=f"Expected {expected.value} relationship in {other.id}",
                    )
                )

    return issues


def validate_relationship_graph(
    features: Sequence[Feature],
    modules: Optional[Sequence[Module]] = None,
) -> ValidationReport:
    """
    Validate the semantic relationship graph.

    Args:
        features: Complete feature snapshot
        modules: Module records; the module-boundary check is skipped when None

    Returns:
        ValidationReport with issues ordered error, warning, info
    """
    index = _index_features(features)
    issues: List[ValidationIssue] = []

    # 1. References
    issues.extend(_check_references(index))

    # 2. Cycles
    cycles = _detect_ordering_cycles(index)
    for cycle in cycles:
        issues.append(
            ValidationIssue(
                severity=IssueSeverity.ERROR,
                category=IssueCategory.CIRCULAR_DEPENDENCY,
                feature_ids=cycle,
                message=f"Circular dependency detected: {' -> '.join(cycle)}",
                recommendation="Break the cycle by changing one of the dependencies "
                "to 'complements' or 'integrates-with'",
            )
        )

    # 3. Orphans
    referenced = {
        rel.feature_id
        for feature in index.values()
        for rel in feature.semantic_relationships
        if rel.feature_id != feature.id
    }
    orphaned = []
    for feature_id, feature in index.items():
        if feature.semantic_relationships or feature_id in referenced or feature.has_data_contract:
            continue
        orphaned.append(feature_id)
        issues.append(
            ValidationIssue(
                severity=IssueSeverity.INFO,
                category=IssueCategory.ORPHANED_FEATURE,
                feature_ids=[feature_id],
                message=f"{feature_id} has no relationships with other features",
                recommendation="Consider if this feature depends on or relates to any existing features",
            )
        )

    # 4. Data contracts
    issues.extend(_check_data_contracts(index))

    # 5. Module boundaries
    if modules is None:
        logger.debug("No modules supplied, skipping module-boundary check")
    else:
        issues.extend(_check_module_boundaries(index, modules))

    # 6. Symmetry
    issues.extend(_check_symmetry(index))

    statistics = ValidationStatistics(
        total_features=len(index),
        total_modules=len(modules) if modules is not None else 0,
        total_relationships=sum(len(f.semantic_relationships) for f in index.values()),
        features_with_relationships=sum(1 for f in index.values() if f.semantic_relationships),
        features_with_data_contracts=sum(1 for f in index.values() if f.has_data_contract),
        orphaned_features=len(orphaned),
        circular_dependencies=len(cycles),
    )

    logger.debug(
        f"Relationship validation: {len(issues)} issue(s), {len(cycles)} cycle(s), "
        f"{len(orphaned)} orphan(s)"
    )
    return ValidationReport(issues=issues, statistics=statistics)
