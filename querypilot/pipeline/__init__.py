"""
Pipeline Module

PlanSession ties schema resolution, the LLM provider, plan parsing,
compilation and the coordinator together.
"""

from querypilot.pipeline.session import PlanSession

__all__ = ["PlanSession"]
