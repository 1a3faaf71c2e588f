"""Token usage accounting.

Usage is a monoid: ``TokenUsageReport.empty()`` is the identity and
``merge`` is associative and commutative, so per-call, per-turn and
per-conversation rollups all fold with the same operation.
"""

from __future__ import annotations

import math
from typing import Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

CLASSIFICATION = "classification"
RESPONSE_GENERATION = "response_generation"


def _count(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if not math.isfinite(value) or value <= 0:
        return 0
    return int(value)


class TokenUsage(BaseModel):
    """Token counts for one or more model calls."""

    model_config = ConfigDict(frozen=True)

    input_token_count: int = Field(default=0, ge=0)
    output_token_count: int = Field(default=0, ge=0)
    total_token_count: int = Field(default=0, ge=0)

    @classmethod
    def from_counts(
        cls,
        input_tokens: Optional[object] = None,
        output_tokens: Optional[object] = None,
        total_tokens: Optional[object] = None,
    ) -> TokenUsage:
        """Build from raw provider counts.

        Missing or invalid counts become 0. The total is never smaller than
        input + output, since some providers omit it or exclude thinking tokens
        from the split.
        """
        inp = _count(input_tokens)
        out = _count(output_tokens)
        total = max(_count(total_tokens), inp + out)
        return cls(input_token_count=inp, output_token_count=out, total_token_count=total)

    @classmethod
    def from_provider_usage(cls, usage: Mapping[str, object] | None) -> TokenUsage:
        """Build from the ``usage`` dict attached to an LLMResponse."""
        if not usage:
            return cls()
        return cls.from_counts(
            usage.get("prompt_tokens"),
            usage.get("completion_tokens"),
            usage.get("total_tokens"),
        )

    def __add__(self, other: TokenUsage) -> TokenUsage:
        if not isinstance(other, TokenUsage):
            return NotImplemented
        return TokenUsage(
            input_token_count=self.input_token_count + other.input_token_count,
            output_token_count=self.output_token_count + other.output_token_count,
            total_token_count=self.total_token_count + other.total_token_count,
        )


class TokenUsageReport(BaseModel):
    """Usage keyed by feature name, e.g. ``classification``."""

    model_config = ConfigDict(frozen=True)

    by_feature: dict[str, TokenUsage] = Field(default_factory=dict)

    @classmethod
    def empty(cls) -> TokenUsageReport:
        return cls()

    @classmethod
    def single(cls, feature: str, usage: TokenUsage) -> TokenUsageReport:
        return cls(by_feature={feature: usage})

    @classmethod
    def sum(cls, reports: Iterable[TokenUsageReport]) -> TokenUsageReport:
        total = cls.empty()
        for report in reports:
            total = total.merge(report)
        return total

    def merge(self, other: TokenUsageReport) -> TokenUsageReport:
        merged = dict(self.by_feature)
        for feature, usage in other.by_feature.items():
            merged[feature] = merged[feature] + usage if feature in merged else usage
        return TokenUsageReport(by_feature=merged)

    def __add__(self, other: TokenUsageReport) -> TokenUsageReport:
        if not isinstance(other, TokenUsageReport):
            return NotImplemented
        return self.merge(other)

    @property
    def totals(self) -> TokenUsage:
        total = TokenUsage()
        for usage in self.by_feature.values():
            total = total + usage
        return total

    @property
    def is_empty(self) -> bool:
        return all(usage == TokenUsage() for usage in self.by_feature.values())
