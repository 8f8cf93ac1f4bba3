"""
Tests for backend compilers: lowering of every predicate node per backend.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from bson.decimal128 import Decimal128

from crossquery.querydsl.compilers.elasticsearch import ElasticsearchWhereCompiler
from crossquery.querydsl.compilers.mongo import MongoWhereCompiler
from crossquery.querydsl.compilers.postgres import PostgresWhereCompiler
from crossquery.querydsl.compilers.utils import like_pattern, quote_identifier, regex_pattern, wildcard_pattern
from crossquery.querydsl.q import And, Compare, IsNull, Not, Or, Range, TextMatch

BACKENDS = [
    ("postgres", PostgresWhereCompiler()),
    ("mongo", MongoWhereCompiler()),
    ("elasticsearch", ElasticsearchWhereCompiler(keyword_suffix=".keyword")),
]

DAY_START = datetime(2024, 3, 15)
DAY_END = datetime(2024, 3, 15, 23, 59, 59, 999999)


@pytest.mark.parametrize("name,compiler", BACKENDS)
def test_compiler_rejects_invalid_types(name, compiler):
    with pytest.raises(TypeError):
        compiler.to_where({"name": "x"})
    with pytest.raises(TypeError):
        compiler.to_where(123)


@pytest.mark.parametrize("name,compiler", BACKENDS)
def test_compiler_to_expr_is_string(name, compiler):
    assert isinstance(compiler.to_expr(Compare("name", "eq", "x")), str)


class TestPostgresCompiler:
    compiler = PostgresWhereCompiler()

    def test_no_filter(self):
        assert self.compiler.to_where(None) == ("", [])

    @pytest.mark.parametrize(
        "op,sql",
        [("eq", "="), ("ne", "<>"), ("gt", ">"), ("gte", ">="), ("lt", "<"), ("lte", "<=")],
    )
    def test_comparisons(self, op, sql):
        assert self.compiler.to_where(Compare("usages", op, 10)) == (f'"usages" {sql} %s', [10])

    def test_in_and_not_in(self):
        assert self.compiler.to_where(Compare("name", "in", ["a", "b"])) == ('"name" IN (%s, %s)', ["a", "b"])
        assert self.compiler.to_where(Compare("name", "nin", ["a"])) == ('"name" NOT IN (%s)', ["a"])

    def test_empty_membership(self):
        assert self.compiler.to_where(Compare("name", "in", [])) == ("FALSE", [])
        assert self.compiler.to_where(Compare("name", "nin", [])) == ("TRUE", [])

    def test_range(self):
        sql, params = self.compiler.to_where(Range("release_date", DAY_START, DAY_END))
        assert sql == '("release_date" >= %s AND "release_date" <= %s)'
        assert params == [DAY_START, DAY_END]

    @pytest.mark.parametrize(
        "mode,pattern",
        [("contains", "%win%"), ("starts_with", "win%"), ("ends_with", "%win")],
    )
    def test_text_match(self, mode, pattern):
        sql, params = self.compiler.to_where(TextMatch("name", "win", mode))
        assert sql == 'UPPER(CAST("name" AS TEXT)) LIKE UPPER(%s)'
        assert params == [pattern]

    def test_text_match_escapes_like_wildcards(self):
        _, params = self.compiler.to_where(TextMatch("name", "50%_off\\"))
        assert params == ["%50\\%\\_off\\\\%"]

    def test_blank(self):
        sql, params = self.compiler.to_where(Or(IsNull("version"), Compare("version", "eq", "")))
        assert sql == '("version" IS NULL OR CAST("version" AS TEXT) = %s)'
        assert params == [""]

    def test_not_blank(self):
        sql, params = self.compiler.to_where(And(Not(IsNull("version")), Compare("version", "ne", "")))
        assert sql == '(NOT COALESCE("version" IS NULL, FALSE) AND CAST("version" AS TEXT) <> %s)'
        assert params == [""]

    def test_not_contains_keeps_null_rows(self):
        sql, params = self.compiler.to_where(Not(TextMatch("kernel", "linux")))
        assert sql == 'NOT COALESCE(UPPER(CAST("kernel" AS TEXT)) LIKE UPPER(%s), FALSE)'
        assert params == ["%linux%"]

    def test_parameters_in_order(self):
        node = And(Compare("a", "eq", 1), Or(Compare("b", "gt", 2), Compare("c", "in", [3, 4])))
        sql, params = self.compiler.to_where(node)
        assert sql == '("a" = %s AND ("b" > %s OR "c" IN (%s, %s)))'
        assert params == [1, 2, 3, 4]

    def test_expression_inlines_values(self):
        expr = self.compiler.to_expr(And(Compare("name", "eq", "O'Neil"), Compare("lts", "eq", True)))
        assert expr == "(\"name\" = 'O''Neil' AND \"lts\" = TRUE)"

    def test_quote_identifier(self):
        assert quote_identifier("name") == '"name"'
        assert quote_identifier("public.operating_system") == '"public"."operating_system"'
        assert quote_identifier('we"ird') == '"we""ird"'


class TestMongoCompiler:
    compiler = MongoWhereCompiler()

    def test_no_filter(self):
        assert self.compiler.to_where(None) == {}

    @pytest.mark.parametrize("op", ["eq", "ne", "gt", "gte", "lt", "lte"])
    def test_comparisons(self, op):
        assert self.compiler.to_where(Compare("usages", op, 10)) == {"usages": {f"${op}": 10}}

    def test_membership(self):
        assert self.compiler.to_where(Compare("name", "in", ["a"])) == {"name": {"$in": ["a"]}}
        assert self.compiler.to_where(Compare("name", "nin", [])) == {"name": {"$nin": []}}

    def test_range(self):
        assert self.compiler.to_where(Range("d", DAY_START, DAY_END)) == {"d": {"$gte": DAY_START, "$lte": DAY_END}}

    def test_text_match_is_escaped_case_insensitive_regex(self):
        assert self.compiler.to_where(TextMatch("name", "a.b", "contains")) == {
            "name": {"$regex": "a\\.b", "$options": "i"}
        }
        assert self.compiler.to_where(TextMatch("name", "win", "starts_with"))["name"]["$regex"] == "^win"
        assert self.compiler.to_where(TextMatch("name", "win", "ends_with"))["name"]["$regex"] == "win$"

    def test_logical(self):
        node = And(Compare("a", "eq", 1), Or(IsNull("b"), Not(Compare("c", "eq", 2))))
        assert self.compiler.to_where(node) == {
            "$and": [
                {"a": {"$eq": 1}},
                {"$or": [{"b": None}, {"$nor": [{"c": {"$eq": 2}}]}]},
            ]
        }

    def test_decimal_values_become_decimal128(self):
        where = self.compiler.to_where(Compare("price", "in", [Decimal("1.10"), 2]))
        assert where == {"price": {"$in": [Decimal128(Decimal("1.10")), 2]}}


class TestElasticsearchCompiler:
    compiler = ElasticsearchWhereCompiler(keyword_suffix=".keyword")

    def test_no_filter(self):
        assert self.compiler.to_where(None) == {"match_all": {}}

    def test_text_equality_uses_keyword(self):
        assert self.compiler.to_where(Compare("name", "eq", "Ubuntu")) == {"term": {"name.keyword": "Ubuntu"}}

    def test_numeric_equality_uses_field(self):
        assert self.compiler.to_where(Compare("usages", "eq", 10)) == {"term": {"usages": 10}}

    def test_not_equals(self):
        assert self.compiler.to_where(Compare("usages", "ne", 10)) == {
            "bool": {"must_not": [{"term": {"usages": 10}}]}
        }

    def test_membership(self):
        assert self.compiler.to_where(Compare("name", "in", ["a", "b"])) == {"terms": {"name.keyword": ["a", "b"]}}
        assert self.compiler.to_where(Compare("usages", "nin", [1])) == {
            "bool": {"must_not": [{"terms": {"usages": [1]}}]}
        }

    @pytest.mark.parametrize("op", ["gt", "gte", "lt", "lte"])
    def test_ranges(self, op):
        assert self.compiler.to_where(Compare("usages", op, 5)) == {"range": {"usages": {op: 5}}}

    def test_dates_serialized_iso(self):
        assert self.compiler.to_where(Range("release_date", DAY_START, DAY_END)) == {
            "range": {"release_date": {"gte": "2024-03-15T00:00:00", "lte": "2024-03-15T23:59:59.999999"}}
        }

    def test_decimal_serialized_as_string(self):
        assert self.compiler.to_where(Compare("price", "gt", Decimal("9.99"))) == {"range": {"price": {"gt": "9.99"}}}

    @pytest.mark.parametrize(
        "node,expected",
        [
            (Compare("release_date", "eq", DAY_END), {"term": {"release_date": "2024-03-15T23:59:59.999999"}}),
            (
                Compare("release_date", "ne", DAY_START),
                {"bool": {"must_not": [{"term": {"release_date": "2024-03-15T00:00:00"}}]}},
            ),
            (
                Compare("release_date", "in", [DAY_START, DAY_END]),
                {"terms": {"release_date": ["2024-03-15T00:00:00", "2024-03-15T23:59:59.999999"]}},
            ),
            (Compare("price", "eq", Decimal("0.1000000000000000000001")), {"term": {"price": "0.1000000000000000000001"}}),
            (Compare("price", "nin", [Decimal("1.5")]), {"bool": {"must_not": [{"terms": {"price": ["1.5"]}}]}}),
        ],
    )
    def test_dates_and_decimals_skip_keyword(self, node, expected):
        assert self.compiler.to_where(node) == expected

    def test_wildcard(self):
        assert self.compiler.to_where(TextMatch("name", "w*n?", "contains")) == {
            "wildcard": {"name.keyword": {"value": "*w\\*n\\?*", "case_insensitive": True}}
        }

    def test_is_null(self):
        assert self.compiler.to_where(IsNull("kernel")) == {"bool": {"must_not": [{"exists": {"field": "kernel"}}]}}

    def test_logical(self):
        node = Or(Compare("a", "eq", 1), And(Compare("b", "eq", 2), Not(Compare("c", "eq", 3))))
        assert self.compiler.to_where(node) == {
            "bool": {
                "should": [
                    {"term": {"a": 1}},
                    {"bool": {"must": [{"term": {"b": 2}}, {"bool": {"must_not": [{"term": {"c": 3}}]}}]}},
                ],
                "minimum_should_match": 1,
            }
        }

    def test_custom_keyword_suffix(self):
        compiler = ElasticsearchWhereCompiler(keyword_suffix="")
        assert compiler.to_where(Compare("name", "eq", "x")) == {"term": {"name": "x"}}
        assert compiler.keyword_field("name") == "name"


@pytest.mark.parametrize(
    "builder,expected",
    [
        (like_pattern, ["%a\\%b%", "a\\%b%", "%a\\%b"]),
        (regex_pattern, ["a%b", "^a%b", "a%b$"]),
        (wildcard_pattern, ["*a%b*", "a%b*", "*a%b"]),
    ],
)
def test_pattern_builders(builder, expected):
    assert [builder("a%b", mode) for mode in ("contains", "starts_with", "ends_with")] == expected
