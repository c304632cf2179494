"""Two-stage route analysis pipeline.

Grounded research feeds a schema-constrained synthesis whose totals are then
recomputed locally.
"""

from __future__ import annotations

from typing import Any


def __getattr__(name: str) -> Any:
    if name == "RouteAnalysisPipeline":
        from .pipeline import RouteAnalysisPipeline as loaded_pipeline

        return loaded_pipeline
    raise AttributeError(name)


__all__ = ["RouteAnalysisPipeline"]
