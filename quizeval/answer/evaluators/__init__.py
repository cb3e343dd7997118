"""
Type-specific question evaluators.

Importing this package registers one evaluator per question type and
verifies that every type is covered.
"""

from ..evaluator import get_registry
from .blanks import FillInTheBlankEvaluator
from .choice import (
    ComplexMultipleChoiceEvaluator,
    MultipleChoiceEvaluator,
    MultipleSelectEvaluator,
    to_option_index,
)
from .essay import EssayEvaluator
from .numeric import NumberEvaluator, parse_number
from .string import TextEvaluator

get_registry().ensure_exhaustive()

__all__ = [
    "MultipleChoiceEvaluator",
    "MultipleSelectEvaluator",
    "ComplexMultipleChoiceEvaluator",
    "TextEvaluator",
    "NumberEvaluator",
    "EssayEvaluator",
    "FillInTheBlankEvaluator",
    "to_option_index",
    "parse_number",
]
