"""Token and request consumption counters.

``Usage`` is immutable and additive: ``Usage.empty()`` is the identity and
``add`` is associative and commutative over the scalar counters, so usage
from concurrent model calls can be merged in any order.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class RequestUsage:
    """Usage reported for a single model request."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class Usage:
    """Accumulated request and token counts for a run."""

    requests: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    request_usage_entries: tuple[RequestUsage, ...] = field(default=(), compare=False)

    @classmethod
    def empty(cls) -> Usage:
        """Return the all-zero identity value."""
        return cls()

    @classmethod
    def for_request(cls, input_tokens: int = 0, output_tokens: int = 0) -> Usage:
        """Build the usage delta for one model request."""
        total = input_tokens + output_tokens
        return cls(
            requests=1,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=total,
            request_usage_entries=(RequestUsage(input_tokens, output_tokens, total),),
        )

    def add(self, other: Usage | None) -> Usage:
        """Return a new Usage that is the sum of this and ``other``."""
        if other is None:
            return self
        return Usage(
            requests=self.requests + other.requests,
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
            request_usage_entries=self.request_usage_entries + other.request_usage_entries,
        )

    def __add__(self, other: Usage) -> Usage:
        if not isinstance(other, Usage):
            return NotImplemented
        return self.add(other)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict."""
        data = asdict(self)
        data["request_usage_entries"] = [asdict(entry) for entry in self.request_usage_entries]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Usage:
        """Rebuild from ``to_dict`` output."""
        entries = tuple(RequestUsage(**entry) for entry in data.get("request_usage_entries", []))
        return cls(
            requests=data.get("requests", 0),
            input_tokens=data.get("input_tokens", 0),
            output_tokens=data.get("output_tokens", 0),
            total_tokens=data.get("total_tokens", 0),
            request_usage_entries=entries,
        )
