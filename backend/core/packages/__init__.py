"""Installable package catalog."""

from core.packages.models import Package
from core.packages.registry import PackageRegistry, load_catalog

__all__ = [
    "Package",
    "PackageRegistry",
    "load_catalog",
]
