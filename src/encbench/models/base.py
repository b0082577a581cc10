# Copyright (c) Syntropy Systems
"""Shared Pydantic model helpers for encbench."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class BenchBaseModel(BaseModel):
    """Base model with shared config for encbench schemas."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        populate_by_name=True,
    )


class ExtraAllowModel(BaseModel):
    """Base model that preserves extra fields for flexible schemas."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="allow",
        populate_by_name=True,
    )
