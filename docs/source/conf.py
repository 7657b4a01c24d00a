# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# add project root to sys.path for autodoc
import os
import sys

sys.path.insert(0, os.path.abspath('../..'))

# -- Project information -----------------------------------------------------

project = 'ExpenseClient'
author = 'ExpenseClient contributors'
release = '0.1.0'

# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.autosectionlabel',
    'sphinx_markdown_builder',
]

napoleon_google_docstring = True
napoleon_use_param = False
napoleon_use_ivar = False

exclude_patterns = []

autodoc_default_options = {
    'member-order': 'groupwise',
    'show-inheritance': True,
}
autodoc_preserve_defaults = True
# Qt and the scientific stack are heavy, keep doc builds light
autodoc_mock_imports = ['PySide6', 'pandas', 'statsmodels']

# -- Options for HTML output -------------------------------------------------

html_theme = 'furo'
html_theme_options = {
    "navigation_with_keys": True,
}
highlight_language = "python"
