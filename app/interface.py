"""Shared enums used across the surveillance pipelines."""

from enum import Enum


class MutationType(Enum):
    """SnpEff effect class of a mutation."""
    SYNONYMOUS = "S"
    NONSYNONYMOUS = "N"

    @classmethod
    def parse(cls, value) -> "MutationType":
        """Parse a mutation type from its short ("S"/"N") or long form.

        Raises:
            ValueError: If the value is not a known mutation type
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        aliases = {
            "s": cls.SYNONYMOUS,
            "synonymous": cls.SYNONYMOUS,
            "n": cls.NONSYNONYMOUS,
            "nonsynonymous": cls.NONSYNONYMOUS,
            "non-synonymous": cls.NONSYNONYMOUS,
        }
        if text not in aliases:
            raise ValueError(f"Unknown mutation type: {value}")
        return aliases[text]


class BucketKind(Enum):
    """Width and anchoring of a date bucket."""
    WEEK = "week"  # ISO week, starting Monday
    SEVEN_DAY = "7day"  # 7-day intervals from an origin date
