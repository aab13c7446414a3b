"""Transition Engine - Guards, executor and recommendation scorer"""
from .definition_store import WorkflowDefinitionStore
from .guard_evaluator import GuardEvaluator
from .capability_resolver import CapabilityResolver
from .post_functions import PostFunctionRunner
from .activity_writer import ActivityWriter
from .executor import TransitionExecutor
from .recommendation import RecommendationScorer, MIN_CONFIDENCE, normalize_confidence

__all__ = [
    "WorkflowDefinitionStore",
    "GuardEvaluator",
    "CapabilityResolver",
    "PostFunctionRunner",
    "ActivityWriter",
    "TransitionExecutor",
    "RecommendationScorer",
    "MIN_CONFIDENCE",
    "normalize_confidence",
]
