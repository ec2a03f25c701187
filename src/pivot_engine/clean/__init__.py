"""Cleaning utilities for the engine.

Provides functions to coerce raw record fields (dates, numbers, dimension
labels) into canonical forms and to turn pandas DataFrames or exported
CSV/JSON files into plain record mappings.
"""
