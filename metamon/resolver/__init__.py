"""Resolve imports between units and order a project build.

:class:`ImportResolver` turns import specifiers into absolute unit paths,
builds a :class:`DependencyGraph` for a list of files, and computes a build
order that places imported units before their importers while reporting any
import cycles.
"""

from .models import Dependency, DependencyGraph, FileInfo, FileType
from .resolver import ImportResolver

__all__ = ["Dependency", "DependencyGraph", "FileInfo", "FileType", "ImportResolver"]
