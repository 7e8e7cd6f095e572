"""Shared fixtures for index tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from terraplane.index import FileIndex, HclParser, build


@pytest.fixture(scope="session")
def parser() -> HclParser:
    """One tree-sitter-hcl parser for the whole session."""
    return HclParser()


@pytest.fixture
def build_text(parser: HclParser) -> Callable[[str | None, str], FileIndex]:
    """Parse and build a FileIndex from source text."""

    def _build(uri: str | None, text: str) -> FileIndex:
        result, error = parser.parse(text)
        return build(uri, result, error)

    return _build


@pytest.fixture
def template() -> str:
    """Document with one resource, one variable and one data block."""
    return """
resource "aws_s3_bucket" "bucket" {}
variable "region" {}
data "template_file" "template" {}
"""


@pytest.fixture
def template_index(build_text: Callable[[str | None, str], FileIndex], template: str) -> FileIndex:
    return build_text(None, template)


def _referencing(name: str) -> str:
    return f"""
resource "aws_s3_bucket" "{name}" {{
  name = "${{var.region}}"
}}
"""


@pytest.fixture
def referencing() -> Callable[[str], str]:
    """Source of a bucket resource whose name interpolates var.region."""
    return _referencing
