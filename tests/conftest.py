"""Shared fixtures for feature graph tests."""

from typing import Iterable, Union

import pytest

from feature_graph.schemas import Feature


def build_feature(
    feature_id: str,
    depends_on: Iterable[Union[str, tuple]] = (),
    status: str = "draft",
    **fields,
) -> Feature:
    """Build a Feature with hard dependencies given as ids or (id, type) pairs."""
    deps = []
    for dep in depends_on:
        if isinstance(dep, tuple):
            dep_id, dep_type = dep
        else:
            dep_id, dep_type = dep, "blocks"
        deps.append({"featureId": dep_id, "type": dep_type})

    fields.setdefault("name", f"Feature {feature_id}")
    return Feature(id=feature_id, status=status, executionDependencies=deps, **fields)


@pytest.fixture
def make_feature():
    """Factory fixture for Feature records."""
    return build_feature


@pytest.fixture
def chain(make_feature):
    """D -> C -> B -> A, nothing completed."""
    return [
        make_feature("A"),
        make_feature("B", ["A"]),
        make_feature("C", ["B"]),
        make_feature("D", ["C"]),
    ]


@pytest.fixture
def diamond(make_feature):
    """D depends on B and C, both depend on A."""
    return [
        make_feature("A"),
        make_feature("B", ["A"]),
        make_feature("C", ["A"]),
        make_feature("D", ["C", "B"]),
    ]
