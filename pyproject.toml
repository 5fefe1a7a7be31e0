[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "treetar"
version = "0.1.0"
description = "Helpers for tar streams of content-addressed filesystem trees: ref escaping, object path layout, tar filtering, xattrs bookkeeping and inode checks"
requires-python = ">=3.10"
dependencies = []
keywords = ["ostree", "tar", "container", "refs", "filesystem", "content-addressed"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Software Distribution",
    "Topic :: System :: Archiving",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["treetar"]

[tool.hatch.build.targets.sdist]
include = ["treetar", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
