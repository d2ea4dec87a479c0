"""Shared core type aliases used across contracts, pipeline, and ports."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Sequence

ParameterMap = Dict[str, Any]
ArgumentValues = Sequence[Any]
EvaluationContext = Mapping[str, Any]

Row = Mapping[str, Any]
