"""Valid/missing classification of detail rules."""

from .classifier import ClassifiedCategorySet, ElseRule, classify_codes, classify_rules

__all__ = ["ClassifiedCategorySet", "ElseRule", "classify_codes", "classify_rules"]
