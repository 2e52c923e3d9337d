# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Sphinx configuration for genro-dbaccess documentation."""

import os
import sys

sys.path.insert(0, os.path.abspath("../src"))

project = "genro-dbaccess"
copyright = "2025, Softwell S.r.l."
author = "Genropy Team"
release = "0.1.0"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.intersphinx",
    "sphinx_autodoc_typehints",
    "myst_parser",
]

# Docstrings are Google style; driver modules are imported lazily
napoleon_numpy_docstring = False
autodoc_default_options = {"members": True, "member-order": "bysource"}
autodoc_mock_imports = ["psycopg", "aiomysql"]
autodoc_typehints = "description"

# Links for the types that appear in signatures: rows, configs and driver errors
intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "pydantic": ("https://docs.pydantic.dev/latest", None),
    "aiosqlite": ("https://aiosqlite.omnilib.dev/en/stable", None),
    "psycopg": ("https://www.psycopg.org/psycopg3/docs", None),
    "aiomysql": ("https://aiomysql.readthedocs.io/en/stable", None),
    "click": ("https://click.palletsprojects.com/en/stable", None),
}

html_theme = "furo"
html_static_path = ["_static"]
html_title = "genro-dbaccess"

source_suffix = {".md": "markdown"}
master_doc = "index"
exclude_patterns = ["_build"]
