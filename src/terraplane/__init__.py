"""Terraplane - section index and reference resolution for Terraform workspaces."""

__version__ = "0.1.0"
