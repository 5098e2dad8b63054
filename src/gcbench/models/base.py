# Copyright (c) Syntropy Systems
"""Shared Pydantic model helpers for gcbench."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class GCBenchBaseModel(BaseModel):
    """Base model with shared config for gcbench schemas."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        populate_by_name=True,
    )


class FrozenModel(BaseModel):
    """Base model for immutable value records."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )
