# jam

A library for working with packaged buildpacks and extensions. It collects the files that go into a buildpack or extension package. It reads extension metadata out of OCI image archives. It writes Markdown or JSON summaries of buildpacks and extensions.

## Installation

```
pip install .
```

## Collecting files for a package

`jam.file_bundler.FileBundler.bundle(root, paths, config)` returns a list of `File` objects, one for each path, in the order given.

- The path `buildpack.toml` is not read from disk. It is encoded as TOML from `config`, a mapping, and empty or unset entries are left out. It is given mode `0644`.
- A path under `root` that is not a regular file, such as a symbolic link, becomes a `File` whose `link` is the link target made relative to `root`. Such a file has no content stream.
- Every other path is opened for reading in binary mode.

`bundle_extension(root, paths, config)` works the same way, but encodes `extension.toml` in place of `buildpack.toml`.

Each `File` has a `name`, an `info` (`FileInfo` with `name`, `size`, `mode`, `mtime`, the `permissions` and `is_symlink` properties and an `is_dir()` method) and a `link`. `read()` returns the remaining content. It raises `ValueError` for a file with no content stream. `close()` closes the stream, and a `File` can be used as a context manager.

```python
from jam.file_bundler import FileBundler

files = FileBundler().bundle(
    "path/to/buildpack",
    ["bin/build", "bin/detect", "buildpack.toml"],
    {"api": "0.2", "buildpack": {"id": "some-id", "name": "Some Name", "version": "1.0.0"}},
)
for file in files:
    with file:
        print(file.name, file.info.size, file.link or file.read()[:20])
```

A path that cannot be stated raises `OSError` with a message that starts with `error stating included file:`. If any path fails, the files already opened are closed.

## Inspecting a packaged extension

`jam.extension_inspector.ExtensionInspector.dependencies(path)` reads an OCI image archive (an uncompressed tar). It follows `index.json` to the first manifest. It decompresses each gzipped layer named by that manifest and decodes every `extension.toml` it finds in the layer. A flattened layer may hold several such files. The result is a list of `ExtensionMetadata`, each with the decoded `config` dict. When the archive holds exactly one extension, its `sha256` is set to the manifest digest.

```python
from jam.extension_inspector import ExtensionInspector

entries = ExtensionInspector().dependencies("extension.oci")
```

Errors:

- A missing archive member raises `ArchiveFileNotFoundError`, for example with the message `failed to fetch archived file index.json`.
- A layer that is not gzip data raises `ValueError` with the message `failed to read layer blob: ...`.
- Malformed JSON or TOML raises the decoder's own error.

## Summaries

`jam.formatter.Formatter(writer)` writes to a text stream. It takes a list of `BuildpackMetadata` (`config` dict and `sha256`).

- `markdown(entries)`: with a single entry, it writes the buildpack's name, version, ID and digest, then its supported stacks, default dependency versions and a dependency table. With several entries, the entry that has an `order` is treated as a language family. The output then lists the included buildpackages sorted by ID, the order groupings, and a collapsible section for each child.
- `json(entries)`: writes `{"buildpackage": ...}` on one line. For a family, the children's configurations go under `"children"`.

In the dependency table, dependencies that share an ID, version, checksum and architecture are merged and their stacks combined. The rows are sorted by ID, then by highest semantic version first. A version that is not a semantic version raises `ValueError`.

`jam.extension_formatter.ExtensionFormatter(writer)` offers the same `markdown` and `json` methods for a list of `ExtensionMetadata`. It summarises the first entry, and its dependency table shows the source of each dependency.

```python
import sys
from jam.extension_formatter import ExtensionFormatter

ExtensionFormatter(sys.stdout).markdown(entries)
ExtensionFormatter(sys.stdout).json(entries)
```

Calling any of these methods with an empty list raises `ValueError`.

## What this package does not do

This is a library only. It has no command-line program. It does not:

- write package tarballs
- run pre-packaging scripts
- read buildpack archives
- talk to image registries
- update builder or buildpack files

## Running the tests

```
pip install .[test]
pytest
```