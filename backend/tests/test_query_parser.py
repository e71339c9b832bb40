"""
Unit tests for query parsing, expansion and SQL assembly.
"""
import pytest

from core.errors import QuerySyntaxError
from models.transcript_models import ContentType
from services.search.query_builder import MAX_OFFSET, SegmentQueryBuilder, normalize_years
from services.search.query_parser import (
    check_balanced,
    clause_expression,
    is_verbatim,
    match_expression,
    parse_query,
    sanitize_term,
    trigrams,
)


class TestVerbatim:
    """Test quoted-query detection."""

    def test_wrapped_query_is_verbatim(self):
        assert is_verbatim('"rick and suds"') is True
        assert is_verbatim('  "sudds"  ') is True

    def test_partial_quotes_are_not_verbatim(self):
        assert is_verbatim('"rick') is False
        assert is_verbatim('rick "suds"') is False
        assert is_verbatim('"a" "b"') is False
        assert is_verbatim('"') is False

    def test_verbatim_skips_expansion(self):
        parsed = parse_query('"jorge"')
        assert parsed.verbatim is True
        assert parsed.clauses == [[("jorge",)]]
        assert match_expression(parsed) == '"jorge"'

    def test_verbatim_keeps_and_literal(self):
        parsed = parse_query('"rick and suds"')
        assert not parsed.is_intersection
        assert match_expression(parsed) == '"rick and suds"'

    def test_empty_quotes(self):
        assert parse_query('""').is_empty


class TestExpansion:
    """Test thesaurus expansion and sanitizing."""

    def test_thesaurus_member_expands_to_class(self):
        parsed = parse_query("jorge")
        assert match_expression(parsed) == '("jorge" OR "george")'

    def test_either_member_expands(self):
        assert match_expression(parse_query("George")) == '("jorge" OR "george")'

    def test_trailing_punctuation_still_expands(self):
        assert match_expression(parse_query("jorge,")) == '("jorge" OR "george")'

    def test_unmatched_terms_pass_through(self):
        assert match_expression(parse_query("dancing queen")) == '"dancing" AND "queen"'

    def test_unsafe_characters_are_stripped(self):
        assert sanitize_term("`it's`") == "its"
        assert match_expression(parse_query('rick"s')) == '"ricks"'

    def test_blank_query(self):
        assert parse_query("   ").is_empty
        assert parse_query("\"'`").is_empty

    def test_punctuation_tokens_are_dropped(self):
        assert parse_query("Rick & here").clauses == parse_query("Rick here").clauses
        assert parse_query("big - rick AND -- suds").clauses == [[("big",), ("rick",)], [("suds",)]]
        assert parse_query("& - ...").is_empty


class TestAndClauses:
    """Test AND splitting."""

    def test_and_splits_clauses(self):
        parsed = parse_query("Rick AND Suds")
        assert parsed.is_intersection
        assert parsed.clauses == [[("Rick",)], [("Suds",)]]
        assert match_expression(parsed) == '("Rick") OR ("Suds")'

    def test_and_is_case_insensitive(self):
        assert parse_query("rick and suds").is_intersection

    def test_stray_ands_are_ignored(self):
        parsed = parse_query("AND rick AND AND suds AND")
        assert parsed.clauses == [[("rick",)], [("suds",)]]

    def test_multi_term_clause(self):
        parsed = parse_query("big rick AND jorge")
        assert clause_expression(parsed.clauses[0]) == '"big" AND "rick"'
        assert clause_expression(parsed.clauses[1]) == '("jorge" OR "george")'


class TestFuzzyExpressions:
    """Test the trigram rewrite."""

    def test_trigrams(self):
        assert trigrams("Sudds") == ["sud", "udd", "dds"]
        assert trigrams("aaaa") == ["aaa"]
        assert trigrams("ab") == ["ab"]

    def test_fuzzy_term_matches_any_trigram(self):
        parsed = parse_query("Sudds")
        assert match_expression(parsed, fuzzy=True) == '("sud" OR "udd" OR "dds")'

    def test_short_term_stays_whole(self):
        assert match_expression(parse_query("ok"), fuzzy=True) == '"ok"'

    def test_odd_quotes_are_rejected(self):
        with pytest.raises(QuerySyntaxError):
            check_balanced('"rick')


class TestSegmentQueryBuilder:
    """Test parameterized SQL assembly."""

    def test_user_text_is_only_bound(self):
        sql, params = (
            SegmentQueryBuilder("segments_fts")
            .match('"robert\'); DROP TABLE episodes; --"')
            .content_type(ContentType.SHOW)
            .page(100, 200)
            .build()
        )
        assert "DROP TABLE" not in sql
        assert params[0] == '"robert\'); DROP TABLE episodes; --"'
        assert params[-2:] == [100, 200]

    def test_year_filter(self):
        sql, params = SegmentQueryBuilder().match('"x"').years(["1999", "2000"]).build()
        assert sql.count("date LIKE ?") == 2
        assert "1999-%" in params and "2000-%" in params

    def test_intersection_subqueries(self):
        sql, params = (
            SegmentQueryBuilder("segments_fuzzy")
            .match('("a") OR ("b")')
            .require_all_clauses(['"a"', '"b"'])
            .build()
        )
        assert "INTERSECT" in sql
        assert sql.count("segments_fuzzy MATCH ?") == 3
        assert params[:3] == ['("a") OR ("b")', '"a"', '"b"']

    def test_single_clause_has_no_intersection(self):
        sql, _ = SegmentQueryBuilder().match('"a"').require_all_clauses(['"a"']).build()
        assert "INTERSECT" not in sql

    def test_unknown_table_is_refused(self):
        with pytest.raises(ValueError):
            SegmentQueryBuilder("episodes; --")

    def test_match_is_required(self):
        with pytest.raises(ValueError):
            SegmentQueryBuilder().build()

    def test_offset_is_capped_to_sqlite_integer_range(self):
        _, params = SegmentQueryBuilder().match('"x"').page(100, 2 ** 70).build()
        assert params[-1] == MAX_OFFSET

    def test_normalize_years(self):
        assert normalize_years(["1999", " 2000 ", "99", "abcd", "1999"]) == ["1999", "2000"]
        assert normalize_years(None) == []
