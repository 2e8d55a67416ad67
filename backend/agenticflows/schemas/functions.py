"""Pydantic models for analysis function metadata."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class InputFieldOut(BaseModel):
    name: str
    path: str
    type: str
    required: bool = False
    description: str = ""

    model_config = {"from_attributes": True}


class OutputFieldOut(BaseModel):
    name: str
    path: str
    type: str
    description: str = ""

    model_config = {"from_attributes": True}


class FunctionOut(BaseModel):
    function_id: str
    analysis_type: str
    label: str = ""
    description: str = ""
    schema_version: str = "1"
    inputs: list[InputFieldOut] = Field(default_factory=list)
    outputs: list[OutputFieldOut] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class AutoMapRequest(BaseModel):
    source_function: str
    target_function: str


class AutoMapResponse(BaseModel):
    source_function: str
    target_function: str
    mappings: list[dict[str, Any]]


class ChainRequest(BaseModel):
    """Body for POST /api/analysis/chain is passed through to the analysis service."""
    workflow_id: str
    input_data: dict[str, Any] = Field(default_factory=dict)
    config: dict[str, Any] = Field(default_factory=dict)
