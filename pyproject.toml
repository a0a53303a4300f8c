[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "tdscodec"
version = "0.1.0"
description = "Encoding and decoding of SQL Server TDS column types and values"
requires-python = ">=3.10"
dependencies = []
keywords = ["tds", "sql server", "mssql", "protocol", "codec", "type_info"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Database",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools]
packages = ["tdscodec"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
