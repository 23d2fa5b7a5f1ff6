"""Render summaries of packaged extensions as Markdown or JSON."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, TextIO

from jam.extension_inspector import ExtensionMetadata
from jam.formatter import _first, _group_stacks, _json_config, _sorted_rows, _write_json


def _print_extension_implementation(writer: TextIO, config: Mapping[str, Any]) -> None:
    metadata = config.get("metadata") or {}

    default_versions = metadata.get("default-versions") or {}
    if default_versions:
        writer.write("#### Default Dependency Versions:\n| ID | Version |\n|---|---|\n")
        for key in sorted(default_versions):
            writer.write(f"| {key} | {default_versions[key]} |\n")
        writer.write("\n")

    dependencies = metadata.get("dependencies") or []
    if dependencies:

        def key_of(dependency: Mapping[str, Any]) -> tuple[str, ...]:
            return (
                dependency.get("id", ""),
                dependency.get("version", ""),
                dependency.get("source", ""),
            )

        rows = [
            {"id": dep_id, "version": version, "source": source, "stacks": " ".join(stacks)}
            for (dep_id, version, source), stacks in _group_stacks(dependencies, key_of).items()
        ]

        writer.write("#### Dependencies:\n| Name | Version | Stacks | Source |\n|---|---|---|---|\n")
        for row in _sorted_rows(rows, ("stacks",)):
            writer.write(f"| {row['id']} | {row['version']} | {row['stacks']} | {row['source']} |\n")
        writer.write("\n")


class ExtensionFormatter:
    """Writes extension summaries to a text stream."""

    def __init__(self, writer: TextIO) -> None:
        self.writer = writer

    def markdown(self, entries: Sequence[ExtensionMetadata]) -> None:
        """Write a Markdown summary of the first extension."""
        entry = _first(entries)
        extension = entry.config.get("extension") or {}
        self.writer.write(f"## {extension.get('name', '')} {extension.get('version', '')}\n")
        self.writer.write(f"\n**ID:** `{extension.get('id', '')}`\n\n")
        self.writer.write(f"**Digest:** `{entry.sha256}`\n\n")
        _print_extension_implementation(self.writer, entry.config)

    def json(self, entries: Sequence[ExtensionMetadata]) -> None:
        """Write the configuration of the first extension as JSON."""
        entry = _first(entries)
        _write_json(self.writer, {"buildpackage": _json_config(entry.config, "extension")})