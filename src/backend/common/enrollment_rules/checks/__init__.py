from .presence import RequiredCheck
from .text import (
    EmailFormatCheck,
    ExactLengthCheck,
    MinLengthCheck,
    NoNumbersCheck,
    PatternCheck,
)
from .history import UniqueCheck
from .dates import AgeRangeCheck
from .numeric import MinValueCheck, RangeCheck
from .equality import NotEqualsCheck
from .conditional import ConditionalCheck

__all__ = [
    "RequiredCheck",
    "MinLengthCheck",
    "ExactLengthCheck",
    "NoNumbersCheck",
    "EmailFormatCheck",
    "PatternCheck",
    "UniqueCheck",
    "AgeRangeCheck",
    "RangeCheck",
    "MinValueCheck",
    "NotEqualsCheck",
    "ConditionalCheck",
]
