"""Unit tests for reference parsing (reference.py).

Tests cover:
- Target id and value path for var/data/resource references
- Degenerate input never raising
- Target normalization for strings and sections
- Candidate extraction from expression text
"""

from __future__ import annotations

import pytest

from terraplane.index import (
    Query,
    RawPath,
    Reference,
    ResolvedSection,
    Section,
    iter_reference_candidates,
    normalize_target,
)


class TestReferenceParsing:
    """Reference grammar."""

    def test_handles_variable_references(self) -> None:
        r = Reference("var.region")
        assert r.type == "variable"
        assert r.target_id == "var.region"
        assert r.value_path() == []

    def test_handles_data_references(self) -> None:
        r = Reference("data.template_file.template.rendered")
        assert r.type == "data"
        assert r.target_id == "data.template_file.template"
        assert r.value_path() == ["rendered"]

    def test_handles_resource_references(self) -> None:
        r = Reference("aws_s3_bucket.bucket.arn")
        assert r.type == "aws_s3_bucket"
        assert r.target_id == "aws_s3_bucket.bucket"
        assert r.value_path() == ["arn"]

    def test_deep_value_path(self) -> None:
        r = Reference("aws_subnet.private.*.id")
        assert r.target_id == "aws_subnet.private"
        assert r.value_path() == ["*", "id"]

    def test_variable_attribute_access(self) -> None:
        r = Reference("var.tags.Name")
        assert r.target_id == "var.tags"
        assert r.value_path() == ["Name"]

    def test_one_segment_path_targets_bare_name(self) -> None:
        r = Reference("endpoint")
        assert r.target_id == "endpoint"
        assert r.value_path() == []

    def test_value_path_returns_copy(self) -> None:
        r = Reference("aws_s3_bucket.bucket.arn")
        r.value_path().append("x")
        assert r.value_path() == ["arn"]

    def test_keeps_source_information(self) -> None:
        r = Reference("var.region", "main.tf", None)
        assert r.raw_path == "var.region"
        assert r.uri == "main.tf"
        assert r.location is None

    @pytest.mark.parametrize("raw", ["", ".", "var.", ".region", "a..b", "data.template_file"])
    def test_malformed_paths_do_not_raise(self, raw: str) -> None:
        r = Reference(raw)
        assert r.target_id == raw
        assert r.value_path() == []

    def test_get_query(self) -> None:
        assert Reference("var.region").get_query() == Query(id="var.region")

    def test_query_matches_the_declaring_section(self) -> None:
        section = Section("data", "template_file", "template")
        query = Reference("data.template_file.template.rendered").get_query()
        assert query.matches(section)


class TestNormalizeTarget:
    """Target normalization for query_references."""

    def test_string_target_is_parsed_like_a_reference(self) -> None:
        assert normalize_target("var.region") == "var.region"
        assert normalize_target("var.region.anything") == "var.region"
        assert normalize_target("aws_s3_bucket.bucket.arn") == "aws_s3_bucket.bucket"

    def test_section_target_uses_its_id(self) -> None:
        section = Section("variable", None, "region")
        assert normalize_target(section) == "var.region"

    def test_tagged_targets(self) -> None:
        assert normalize_target(RawPath("data.t.n.id")) == "data.t.n"
        assert normalize_target(ResolvedSection("whatever")) == "whatever"
        assert ResolvedSection.of(Section("output", None, "url")) == ResolvedSection("url")

    @pytest.mark.parametrize("value", [None, 42, ["var", "region"]])
    def test_unsupported_target_raises_type_error(self, value: object) -> None:
        with pytest.raises(TypeError, match="Unsupported reference target"):
            normalize_target(value)  # type: ignore[arg-type]


class TestCandidates:
    """iter_reference_candidates extraction."""

    def test_interpolation(self) -> None:
        assert list(iter_reference_candidates('"${var.region}"')) == [(3, "var.region")]

    def test_bare_expression_and_string_literals(self) -> None:
        text = 'var.enabled ? "x.y.z" : local.fallback'
        paths = [p for _, p in iter_reference_candidates(text)]
        assert paths == ["var.enabled", "local.fallback"]

    def test_builtin_namespaces_are_skipped(self) -> None:
        text = "each.value + count.index + path.module + var.a"
        assert [p for _, p in iter_reference_candidates(text)] == ["var.a"]

    def test_string_literals_inside_interpolation_are_not_references(self) -> None:
        text = '"${lookup(var.tags, "env.name")}-${data.t.n.id}"'
        assert [p for _, p in iter_reference_candidates(text)] == ["var.tags", "data.t.n.id"]

    def test_escaped_interpolation_is_literal_text(self) -> None:
        assert list(iter_reference_candidates('"$${var.region}"')) == []
        assert list(iter_reference_candidates("%%{ if var.x }", template=True)) == []

    def test_escape_does_not_hide_following_interpolation(self) -> None:
        text = '"$${literal.text} ${var.region}"'
        assert list(iter_reference_candidates(text)) == [(20, "var.region")]

    def test_for_expression_iterators_are_skipped(self) -> None:
        text = "[for s in var.subnets : s.id]"
        assert [p for _, p in iter_reference_candidates(text)] == ["var.subnets"]

    def test_for_expression_key_value_iterators_are_skipped(self) -> None:
        text = "{ for k, v in var.tags : k => v.value if v.enabled }"
        assert [p for _, p in iter_reference_candidates(text)] == ["var.tags"]

    def test_template_for_directive(self) -> None:
        text = "<<EOT\n%{ for h in var.hosts }${h.name} ${var.domain}\n%{ endfor }\nEOT"
        paths = [p for _, p in iter_reference_candidates(text, template=True)]
        assert paths == ["var.hosts", "var.domain"]

    def test_comments_are_not_references(self) -> None:
        text = "{\n  # see aws_s3_bucket.old.arn\n  a = var.a // var.b\n  b = 1 /* local.c */\n}"
        assert [p for _, p in iter_reference_candidates(text)] == ["var.a"]

    def test_template_mode_only_reads_interpolations(self) -> None:
        text = '{"a.b": "${aws_iam_role.r.arn}", "c.d": 1}'
        assert [p for _, p in iter_reference_candidates(text, template=True)] == [
            "aws_iam_role.r.arn"
        ]

    def test_numbers_are_not_references(self) -> None:
        assert list(iter_reference_candidates("1.5 + 2.25")) == []

    def test_unterminated_interpolation(self) -> None:
        assert [p for _, p in iter_reference_candidates('"${var.a')] == ["var.a"]
