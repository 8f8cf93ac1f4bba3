"""
Unit tests for crossquery.querydsl (predicate nodes, Q shorthand, dispatch).
"""

from datetime import datetime

import pytest

from crossquery.querydsl.compilers.utils import normalize_where_input
from crossquery.querydsl.q import And, Compare, IsNull, Node, Not, Or, Q, Range, TextMatch


def test_q_basic():
    q = Q(field1="value1", field2__gte=10)
    assert isinstance(q, And)
    d = q.to_dict()
    assert d == {"$and": [{"field1": {"$eq": "value1"}}, {"field2": {"$gte": 10}}]}


def test_q_single_filter_is_a_leaf():
    assert Q(year__lt=2020) == Compare("year", "lt", 2020)


def test_q_lookups():
    assert Q(name__contains="win") == TextMatch("name", "win", "contains")
    assert Q(name__startswith="Win") == TextMatch("name", "Win", "starts_with")
    assert Q(name__endswith="dows") == TextMatch("name", "dows", "ends_with")
    assert Q(usages__between=(1, 5)) == Range("usages", 1, 5)
    assert Q(kernel__isnull=True) == IsNull("kernel")
    assert Q(kernel__isnull=False) == Not(IsNull("kernel"))
    assert Q(tag__in=["a", "b"]) == Compare("tag", "in", ("a", "b"))


def test_q_unknown_lookup_is_field_name():
    assert Q(info__lang="en") == Compare("info__lang", "eq", "en")


def test_q_requires_filters():
    with pytest.raises(ValueError):
        Q()


def test_and_or_flatten():
    a, b, c = Compare("a", "eq", 1), Compare("b", "eq", 2), Compare("c", "eq", 3)
    assert (a & b & c).children == (a, b, c)
    assert (a | b | c).children == (a, b, c)
    mixed = (a & b) | c
    assert isinstance(mixed, Or)
    assert mixed.children[0] == And(a, b)


def test_negation_and_double_negation():
    leaf = TextMatch("name", "win")
    assert ~leaf == Not(leaf)
    assert ~~leaf == leaf
    assert (~leaf).to_dict() == {"$not": {"name": {"$contains": "win"}}}


def test_range_and_null_dicts():
    lo, hi = datetime(2024, 3, 15), datetime(2024, 3, 15, 23, 59, 59, 999999)
    assert Range("d", lo, hi).to_dict() == {"d": {"$gte": lo, "$lte": hi}}
    assert IsNull("kernel").to_dict() == {"kernel": {"$null": True}}


def test_nodes_are_hashable_values():
    assert len({Compare("a", "in", [1, 2]), Compare("a", "in", (1, 2))}) == 1
    assert Compare("a", "eq", 1) != Compare("a", "ne", 1)
    assert Compare("a", "eq", 1) != Range("a", 1, 1)


def test_invalid_operators_rejected():
    with pytest.raises(ValueError):
        Compare("a", "like", "x")
    with pytest.raises(ValueError):
        TextMatch("a", "x", "regex")


def test_generic_backend_returns_universal_dict():
    node = Compare("a", "eq", 1)
    assert node.to_where() == {"a": {"$eq": 1}}
    assert node.to_expr() == str({"a": {"$eq": 1}})


def test_backend_dispatch():
    node = Compare("name", "eq", "Ubuntu")
    assert node.to_where("postgres") == ('"name" = %s', ["Ubuntu"])
    assert node.to_where("mongo") == {"name": {"$eq": "Ubuntu"}}
    assert node.to_where("elasticsearch") == {"term": {"name.keyword": "Ubuntu"}}
    assert node.to_expr("postgres") == "\"name\" = 'Ubuntu'"


def test_normalize_where_input():
    node = Compare("a", "eq", 1)
    assert normalize_where_input(node) is node
    assert normalize_where_input(None) is None
    with pytest.raises(TypeError):
        normalize_where_input({"a": 1})
    with pytest.raises(TypeError):
        normalize_where_input("a = 1")


def test_base_node_is_abstract():
    with pytest.raises(NotImplementedError):
        Node().to_dict()
