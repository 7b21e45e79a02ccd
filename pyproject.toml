[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "copymaster"
version = "0.1.0"
description = "Copy a file with control over how the destination is opened, plus seeking, linking, truncation, permission and directory-listing options"
requires-python = ">=3.10"
dependencies = []
keywords = ["copy", "files", "filesystem", "umask", "lseek", "hard link", "sparse", "directory listing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
copymaster = "copymaster.copier:main"

[tool.hatch.build.targets.wheel]
packages = ["copymaster"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
