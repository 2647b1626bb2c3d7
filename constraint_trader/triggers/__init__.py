"""Triggers: live evaluation of constraints and trade processing."""

from constraint_trader.triggers.evaluator import TriggerEvaluator
from constraint_trader.triggers.processor import TriggerProcessor, TriggerPrecedence

__all__ = ["TriggerEvaluator", "TriggerProcessor", "TriggerPrecedence"]
