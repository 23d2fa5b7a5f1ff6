import io
import json

import pytest

from jam.extension_formatter import ExtensionFormatter
from jam.extension_inspector import ExtensionMetadata

EXTENSION_ID = "paketo-community/ubi-nodejs-extension"
EXTENSION_NAME = "Ubi Node.js Extension"
EXTENSION_VERSION = "0.0.2"
DIGEST = "sha256:manifest-sha"
STACK = "io.buildpacks.stacks.ubi8"
MAJORS = (20, 18, 16)


def _extension():
    return {"id": EXTENSION_ID, "name": EXTENSION_NAME, "version": EXTENSION_VERSION}


def _source(major):
    return f"paketocommunity/run-nodejs-{major}-ubi-base"


def _dependencies():
    return [
        {
            "id": "node",
            "name": "Ubi Node Extension",
            "source": _source(major),
            "stacks": [STACK],
            "version": f"{major}.1000",
        }
        for major in MAJORS
    ]


def _full_entry():
    return ExtensionMetadata(
        config={
            "extension": _extension(),
            "metadata": {"default-versions": {"node": "20.*.*"}, "dependencies": _dependencies()},
        },
        sha256=DIGEST,
    )


def _cells(line):
    assert line.startswith("| ") and line.endswith(" |"), line
    return tuple(line[2:-2].split(" | "))


def _titled_table(block):
    title, header, separator, *rows = block.split("\n")
    columns = _cells(header)
    assert separator == "|---" * len(columns) + "|"
    return title, [columns, *(_cells(row) for row in rows)]


def _header_blocks():
    return [
        f"## {EXTENSION_NAME} {EXTENSION_VERSION}",
        f"**ID:** `{EXTENSION_ID}`",
        f"**Digest:** `{DIGEST}`",
    ]


def _render(entry):
    buffer = io.StringIO()
    ExtensionFormatter(buffer).markdown([entry])
    return buffer.getvalue()


def test_markdown_lists_dependencies():
    blocks = _render(_full_entry()).split("\n\n")

    assert blocks[:3] == _header_blocks()
    assert _titled_table(blocks[3]) == (
        "#### Default Dependency Versions:",
        [("ID", "Version"), ("node", "20.*.*")],
    )
    title, rows = _titled_table(blocks[4])
    assert title == "#### Dependencies:"
    assert rows == [("Name", "Version", "Stacks", "Source")] + [
        ("node", f"{major}.1000", STACK, _source(major)) for major in MAJORS
    ]
    assert blocks[5:] == [""]


def test_markdown_without_dependencies_or_default_versions():
    entry = ExtensionMetadata(config={"extension": _extension()}, sha256=DIGEST)
    assert _render(entry) == "\n\n".join(_header_blocks() + [""])


def test_markdown_merges_stacks_of_identical_dependencies():
    dependency = {"id": "node", "version": "18.1.0", "source": "src"}
    entry = ExtensionMetadata(
        config={
            "extension": _extension(),
            "metadata": {
                "dependencies": [
                    {**dependency, "stacks": ["stack-b"]},
                    {**dependency, "stacks": ["stack-a"]},
                ]
            },
        }
    )
    rows = [_cells(line) for line in _render(entry).splitlines() if line.startswith("| node ")]
    assert rows == [("node", "18.1.0", "stack-a stack-b", "src")]


def test_json_lists_dependencies():
    buffer = io.StringIO()
    ExtensionFormatter(buffer).json([_full_entry()])
    output = buffer.getvalue()
    assert output.endswith("\n")
    decoded = json.loads(output)
    assert decoded == {
        "buildpackage": {
            "extension": _extension(),
            "metadata": {"default-versions": {"node": "20.*.*"}, "dependencies": _dependencies()},
        }
    }


def test_json_rejects_no_entries():
    with pytest.raises(ValueError):
        ExtensionFormatter(io.StringIO()).json([])