"""Render summaries of packaged buildpacks as Markdown or JSON."""

from __future__ import annotations

import functools
import json
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TextIO

_VERSION_PATTERN = re.compile(
    r"^v?([0-9]+)(?:\.([0-9]+))?(?:\.([0-9]+))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


def _version_key(version: str) -> tuple[Any, ...]:
    """Return a sort key for a semantic version; build metadata is ignored."""
    match = _VERSION_PATTERN.match(version)
    if match is None:
        raise ValueError(f"invalid semantic version: {version!r}")
    major, minor, patch, prerelease, _ = match.groups()
    identifiers: tuple[tuple[int, Any], ...] = ()
    if prerelease:
        identifiers = tuple(
            (0, int(part)) if part.isdigit() else (1, part) for part in prerelease.split(".")
        )
    return (int(major), int(minor or 0), int(patch or 0), not prerelease, identifiers)


def _sign(left: Any, right: Any) -> int:
    return (left > right) - (left < right)


def _compare_by_id_then_newest(
    left: Mapping[str, Any], right: Mapping[str, Any], tie_breakers: Sequence[str]
) -> int:
    """Order by id, then highest version first, then by the given fields."""
    if left["id"] != right["id"]:
        return _sign(left["id"], right["id"])
    versions = _sign(_version_key(right["version"]), _version_key(left["version"]))
    if versions:
        return versions
    for name in tie_breakers:
        if left[name] != right[name]:
            return _sign(left[name], right[name])
    return 0


def _sorted_rows(rows: list[dict[str, Any]], tie_breakers: Sequence[str]) -> list[dict[str, Any]]:
    compare: Callable[[Any, Any], int] = functools.partial(
        _compare_by_id_then_newest, tie_breakers=tie_breakers
    )
    return sorted(rows, key=functools.cmp_to_key(compare))


def _group_stacks(
    dependencies: Sequence[Mapping[str, Any]], key_of: Callable[[Mapping[str, Any]], tuple[str, ...]]
) -> dict[tuple[str, ...], list[str]]:
    """Merge the stacks of dependencies that share a key."""
    grouped: dict[tuple[str, ...], list[str]] = {}
    for dependency in dependencies:
        key = key_of(dependency)
        stacks = grouped.setdefault(key, [])
        stacks.extend(dependency.get("stacks") or [])
        stacks.sort()
    return grouped


def _is_empty(value: Any) -> bool:
    return value is None or value is False or (isinstance(value, (str, list, tuple, dict)) and not value)


def _prune(value: Any) -> Any:
    if isinstance(value, Mapping):
        pruned = {str(key): _prune(item) for key, item in value.items()}
        return {key: item for key, item in pruned.items() if not _is_empty(item)}
    if isinstance(value, (list, tuple)):
        return [_prune(item) for item in value if item is not None]
    return value


def _json_config(config: Mapping[str, Any], section: str) -> dict[str, Any]:
    """Drop empty fields but always keep the named section and metadata."""
    pruned = _prune(config)
    api = pruned.pop("api", None)
    result: dict[str, Any] = {} if api is None else {"api": api}
    result[section] = pruned.pop(section, {})
    result["metadata"] = pruned.pop("metadata", {})
    result.update(pruned)
    return result


def _write_json(writer: TextIO, document: Any) -> None:
    text = json.dumps(document, separators=(",", ":"), ensure_ascii=False)
    text = text.replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")
    writer.write(text + "\n")


def _first(entries: Sequence[Any]) -> Any:
    if not entries:
        raise ValueError("no entries to format")
    return entries[0]


@dataclass
class BuildpackMetadata:
    """Decoded buildpack.toml and, for the top-level buildpack, the image digest."""

    config: dict[str, Any] = field(default_factory=dict)
    sha256: str = ""


def _buildpack(config: Mapping[str, Any]) -> Mapping[str, Any]:
    return config.get("buildpack") or {}


def _print_implementation(writer: TextIO, config: Mapping[str, Any]) -> None:
    stacks = config.get("stacks") or []
    if stacks:
        writer.write("### Supported Stacks\n\n")
        for stack in sorted(stacks, key=lambda s: s.get("id", "")):
            writer.write(f"- `{stack.get('id', '')}`\n")
        writer.write("\n")

    metadata = config.get("metadata") or {}
    default_versions = metadata.get("default-versions") or {}
    if default_versions:
        writer.write("### Default Dependency Versions\n\n| ID | Version |\n|---|---|\n")
        for key in sorted(default_versions):
            writer.write(f"| {key} | {default_versions[key]} |\n")
        writer.write("\n")

    dependencies = metadata.get("dependencies") or []
    if dependencies:

        def key_of(dependency: Mapping[str, Any]) -> tuple[str, ...]:
            checksum = dependency.get("checksum") or f"sha256:{dependency.get('sha256', '')}"
            return (
                dependency.get("id", ""),
                dependency.get("version", ""),
                checksum,
                dependency.get("arch", ""),
            )

        rows = [
            {
                "id": dep_id,
                "version": version,
                "checksum": checksum,
                "arch": arch,
                "stacks": " ".join(stacks),
            }
            for (dep_id, version, checksum, arch), stacks in _group_stacks(dependencies, key_of).items()
        ]

        writer.write(
            "### Dependencies\n\n| Name | Version | Arch | Stacks | Checksum |\n|---|---|---|---|---|\n"
        )
        for row in _sorted_rows(rows, ("arch", "stacks")):
            arch = row["arch"] or "-"
            writer.write(
                f"| {row['id']} | {row['version']} | {arch} | {row['stacks']} | {row['checksum']} |\n"
            )
        writer.write("\n")


class Formatter:
    """Writes buildpack summaries to a text stream."""

    def __init__(self, writer: TextIO) -> None:
        self.writer = writer

    def markdown(self, entries: Sequence[BuildpackMetadata]) -> None:
        """Write a Markdown summary of a buildpack or a language family."""
        first = _first(entries)
        if len(entries) == 1:
            buildpack = _buildpack(first.config)
            self.writer.write(f"## {buildpack.get('name', '')} {buildpack.get('version', '')}\n")
            self.writer.write(f"\n**ID:** `{buildpack.get('id', '')}`\n\n")
            self.writer.write(f"**Digest:** `{first.sha256}`\n\n")
            _print_implementation(self.writer, first.config)
            return

        children = list(entries)
        family = BuildpackMetadata()
        for position, entry in enumerate(children):
            if entry.config.get("order"):
                family = children.pop(position)
                break
        children.sort(key=lambda entry: _buildpack(entry.config).get("id", ""))

        write = self.writer.write
        family_buildpack = _buildpack(family.config)
        write(
            f"## {family_buildpack.get('name', '')} {family_buildpack.get('version', '')}\n\n"
            f"**ID:** `{family_buildpack.get('id', '')}`\n\n"
        )
        write(f"**Digest:** `{family.sha256}`\n\n")
        write("### Included Buildpackages\n\n")
        write("| Name | ID | Version |\n|---|---|---|\n")
        for entry in children:
            buildpack = _buildpack(entry.config)
            write(f"| {buildpack.get('name', '')} | {buildpack.get('id', '')} | {buildpack.get('version', '')} |\n")

        write("\n<details>\n<summary>Order Groupings</summary>\n\n")
        for order in family.config.get("order") or []:
            write("| ID | Version | Optional |\n|---|---|---|\n")
            for group in order.get("group") or []:
                optional = "true" if group.get("optional", False) else "false"
                write(f"| {group.get('id', '')} | {group.get('version', '')} | {optional} |\n")
            write("\n")
        write("</details>\n\n---\n")

        for entry in children:
            buildpack = _buildpack(entry.config)
            write(
                f"\n<details>\n<summary>{buildpack.get('name', '')} {buildpack.get('version', '')}</summary>\n"
            )
            write(f"\n**ID:** `{buildpack.get('id', '')}`\n\n")
            _print_implementation(self.writer, entry.config)
            write("---\n\n</details>\n")

    def json(self, entries: Sequence[BuildpackMetadata]) -> None:
        """Write the buildpack configuration, and any children, as JSON."""
        buildpackage = _first(entries).config
        children: list[Mapping[str, Any]] = []
        if len(entries) > 1:
            for entry in entries:
                if entry.config.get("order"):
                    buildpackage = entry.config
                else:
                    children.append(entry.config)

        output: dict[str, Any] = {"buildpackage": _json_config(buildpackage, "buildpack")}
        if children:
            output["children"] = [_json_config(child, "buildpack") for child in children]
        _write_json(self.writer, output)