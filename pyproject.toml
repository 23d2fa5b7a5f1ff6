[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jam"
version = "2.0.0"
description = "Bundle buildpack and extension files and summarize packaged buildpacks and extensions"
requires-python = ">=3.11"
keywords = ["buildpacks", "cloud-native-buildpacks", "extensions", "oci", "packaging"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["jam"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
