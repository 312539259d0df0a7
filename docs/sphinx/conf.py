# Copyright 2026 ActionTags Contributors
# SPDX-License-Identifier: Apache-2.0

"""Sphinx configuration for the ActionTags documentation."""

project = "ActionTags"
author = "ActionTags Contributors"
release = "0.1.0"

extensions: list[str] = ["sphinx.ext.autodoc", "sphinx.ext.napoleon"]

html_theme = "alabaster"
