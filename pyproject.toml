[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xlsxtable"
version = "0.1.0"
description = "Turn Excel workbooks into CSV tables and data-table row struct headers"
requires-python = ">=3.10"
dependencies = []
keywords = ["xlsx", "excel", "csv", "data table", "code generation", "struct"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Code Generators",
    "Topic :: Office/Business :: Financial :: Spreadsheet",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xlsxtable = "xlsxtable.manager:main"

[tool.hatch.build.targets.wheel]
packages = ["xlsxtable"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
