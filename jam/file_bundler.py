"""Collect the files that make up a packaged buildpack or extension."""

from __future__ import annotations

import io
import os
import stat
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, BinaryIO

import tomli_w

_GENERATED_MODE = stat.S_IFREG | 0o644


@dataclass(frozen=True)
class FileInfo:
    """Name, size, mode bits and modification time of a bundled file."""

    name: str
    size: int
    mode: int
    mtime: datetime

    @classmethod
    def _from_stat(cls, name: str, st: os.stat_result) -> FileInfo:
        return cls(
            name=name,
            size=st.st_size,
            mode=st.st_mode,
            mtime=datetime.fromtimestamp(st.st_mtime),
        )

    @property
    def permissions(self) -> int:
        """The permission bits of the mode."""
        return stat.S_IMODE(self.mode)

    @property
    def is_symlink(self) -> bool:
        return stat.S_ISLNK(self.mode)

    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.mode)


@dataclass
class File:
    """A file to be written into a package: content stream or link target."""

    name: str
    info: FileInfo
    link: str = ""
    stream: BinaryIO | None = None

    def read(self) -> bytes:
        """Read the remaining content of the file."""
        if self.stream is None:
            raise ValueError(f"{self.name} has no content to read")
        return self.stream.read()

    def close(self) -> None:
        if self.stream is not None:
            self.stream.close()

    def __enter__(self) -> File:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list, tuple, dict)) and not value)


def _prune(value: Any) -> Any:
    """Drop unset and empty entries, the way the config encoder omits them."""
    if isinstance(value, Mapping):
        pruned = {str(key): _prune(item) for key, item in value.items()}
        return {key: item for key, item in pruned.items() if not _is_empty(item)}
    if isinstance(value, (list, tuple)):
        return [_prune(item) for item in value if item is not None]
    return value


def _encoded_file(name: str, config: Mapping[str, Any]) -> File:
    try:
        content = tomli_w.dumps(_prune(config)).encode()
    except (TypeError, ValueError) as exc:
        raise ValueError(f"error encoding {name}: {exc}") from exc
    info = FileInfo(name=name, size=len(content), mode=_GENERATED_MODE, mtime=datetime.now())
    return File(name=name, info=info, stream=io.BytesIO(content))


class FileBundler:
    """Gathers included files from a buildpack or extension directory."""

    def bundle(self, root: str | os.PathLike[str], paths: Iterable[str], config: Mapping[str, Any]) -> list[File]:
        """Bundle ``paths`` under ``root``, generating buildpack.toml from ``config``."""
        return self._collect(os.fspath(root), paths, "buildpack.toml", config)

    def bundle_extension(
        self, root: str | os.PathLike[str], paths: Iterable[str], config: Mapping[str, Any]
    ) -> list[File]:
        """Bundle ``paths`` under ``root``, generating extension.toml from ``config``."""
        return self._collect(os.fspath(root), paths, "extension.toml", config)

    def _collect(self, root: str, paths: Iterable[str], manifest: str, config: Mapping[str, Any]) -> list[File]:
        files: list[File] = []
        try:
            for path in paths:
                if path == manifest:
                    files.append(_encoded_file(manifest, config))
                else:
                    files.append(self._bundling(root, path))
        except BaseException:
            for file in files:
                file.close()
            raise
        return files

    @staticmethod
    def _bundling(root: str, path: str) -> File:
        full_path = os.path.join(root, path)
        try:
            st = os.lstat(full_path)
        except OSError as exc:
            raise OSError(f"error stating included file: {exc}") from exc

        info = FileInfo._from_stat(os.path.basename(path), st)

        if not stat.S_ISREG(st.st_mode):
            try:
                link = os.readlink(full_path)
            except OSError as exc:
                raise OSError(f"error readlinking included file: {exc}") from exc

            if not link.startswith(os.sep):
                link = os.path.normpath(os.path.join(root, link))

            if os.path.isabs(link) != os.path.isabs(root):
                raise ValueError(
                    f"error finding relative link path: can't make {link} relative to {root}"
                )
            return File(name=path, info=info, link=os.path.relpath(link, root))

        try:
            stream = open(full_path, "rb")
        except OSError as exc:
            raise OSError(f"error opening included file: {exc}") from exc
        return File(name=path, info=info, stream=stream)