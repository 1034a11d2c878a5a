"""Sphinx configuration for the nurbskit documentation.

Loads the package from `src`, and sets the extensions, theme and API
documentation options.
"""

from __future__ import annotations

import importlib.util
import sys
import warnings
from datetime import date
from pathlib import Path
from typing import Final

PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parent.parent
SRC_PATH: Final[Path] = PROJECT_ROOT / "src"
PACKAGE_INIT: Final[Path] = SRC_PATH / "nurbskit" / "__init__.py"

sys.path.insert(0, str(SRC_PATH))

nurbskit_spec = importlib.util.spec_from_file_location("nurbskit", PACKAGE_INIT)
if nurbskit_spec is None or nurbskit_spec.loader is None:
    msg = f"Unable to locate nurbskit package at {PACKAGE_INIT}"
    raise ImportError(msg)
nurbskit = importlib.util.module_from_spec(nurbskit_spec)
sys.modules["nurbskit"] = nurbskit
nurbskit_spec.loader.exec_module(nurbskit)
CURRENT_YEAR: Final[int] = date.today().year

project = "nurbskit"
author = "Pablo Antolin"
copyright = f"{CURRENT_YEAR}, Pablo Antolin"  # pylint: disable=redefined-builtin

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    "sphinx.ext.doctest",
    "sphinx.ext.mathjax",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx.ext.intersphinx",
    "myst_parser",
]

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "numpy": ("https://numpy.org/doc/stable", None),
    "scipy": ("https://docs.scipy.org/doc/scipy/", None),
    "numba": ("https://numba.readthedocs.io/en/stable", None),
}

templates_path = ["_templates"]
exclude_patterns: list[str] = ["_build", "Thumbs.db", ".DS_Store"]

source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}

master_doc = "index"

napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_include_init_with_doc = True
napoleon_attr_annotations = True

autosummary_generate = True
autodoc_typehints = "description"
autodoc_member_order = "bysource"

# Doctest examples use the public API without explicit imports.
doctest_global_setup = "from nurbskit import *"

myst_enable_extensions = [
    "colon_fence",
    "dollarmath",
    "linkify",
]

html_theme = "sphinx_rtd_theme"
if importlib.util.find_spec("sphinx_rtd_theme") is None:
    warnings.warn(
        "sphinx_rtd_theme not found. Falling back to 'alabaster'.",
        stacklevel=1,
    )
    html_theme = "alabaster"
html_static_path: list[str] = []
html_show_sourcelink = True

html_theme_options = {
    "collapse_navigation": False,
    "navigation_depth": 3,
}

version = nurbskit.__version__
release = nurbskit.__version__

nitpicky = False
