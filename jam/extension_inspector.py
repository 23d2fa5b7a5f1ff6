"""Read extension metadata out of an OCI image archive."""

from __future__ import annotations

import gzip
import io
import json
import os
import posixpath
import tarfile
import tomllib
import zlib
from dataclasses import dataclass
from typing import Any


class ArchiveFileNotFoundError(LookupError):
    """Raised when a file cannot be found in an archive."""

    def __init__(self, name: str) -> None:
        super().__init__(f"failed to fetch archived file {name}")
        self.name = name


@dataclass
class ExtensionMetadata:
    """Decoded extension.toml and, for a single extension, the image digest."""

    config: dict[str, Any]
    sha256: str = ""


def _fetch_from_archive(data: bytes, name: str, exact: bool) -> list[bytes]:
    """Return the contents of every regular file in a tar matching ``name``.

    With ``exact`` the whole cleaned path must match; otherwise the base name.
    """
    matches: list[bytes] = []
    if data:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:") as archive:
            for member in archive:
                if not member.isfile():
                    continue
                member_name = posixpath.normpath(member.name)
                found = member_name == name if exact else posixpath.basename(member_name) == name
                if found:
                    extracted = archive.extractfile(member)
                    matches.append(extracted.read() if extracted is not None else b"")
    if not matches:
        raise ArchiveFileNotFoundError(name)
    return matches


def _blob_path(digest: str) -> str:
    return posixpath.join("blobs", "sha256", digest.removeprefix("sha256:"))


class ExtensionInspector:
    """Inspects packaged extensions stored as OCI image archives."""

    def dependencies(self, path: str | os.PathLike[str]) -> list[ExtensionMetadata]:
        """Return the metadata of every extension in the archive at ``path``."""
        with open(path, "rb") as handle:
            data = handle.read()

        # There can only be one image index.
        index = json.loads(_fetch_from_archive(data, "index.json", True)[0])
        digest = index["manifests"][0]["digest"]

        # Only single manifest images are supported.
        manifest = json.loads(_fetch_from_archive(data, _blob_path(digest), True)[0])

        collection: list[ExtensionMetadata] = []
        for layer in manifest.get("layers") or []:
            blob = _fetch_from_archive(data, _blob_path(layer["digest"]), True)[0]
            try:
                layer_tar = gzip.decompress(blob)
            except (OSError, EOFError, zlib.error) as exc:
                raise ValueError(f"failed to read layer blob: {exc}") from exc

            # A flattened layer may hold several extensions.
            for document in _fetch_from_archive(layer_tar, "extension.toml", False):
                collection.append(ExtensionMetadata(config=tomllib.loads(document.decode())))

        if len(collection) == 1:
            collection[0].sha256 = digest

        return collection