"""
Recipe-Index: Publish a directory of recipes as a package-installer endpoint.

This tool turns a tree of versioned recipe directories into:
- One self-contained JSON artifact per recipe version (plus an archived copy)
- A global index.json with aliases, versions, conflicts and URL templates
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
