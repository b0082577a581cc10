# Copyright (c) Syntropy Systems
"""Pydantic models for encbench."""

from .base import BenchBaseModel, ExtraAllowModel
from .results import HyperfineExport, HyperfineResult

__all__ = [
    "BenchBaseModel",
    "ExtraAllowModel",
    "HyperfineExport",
    "HyperfineResult",
]
