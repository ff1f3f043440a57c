"""Feast Finder: Christmas dishes, carols and recipes by country."""

__version__ = "0.1.0"
