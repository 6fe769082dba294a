"""Token usage accounting per pipeline step."""

from dataclasses import dataclass


@dataclass
class TokenUsage:
    """Token counts reported by one or more model calls."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )


@dataclass(frozen=True)
class UsageRecord:
    """Usage attributed to a single pipeline step."""

    step: str
    prompt_units: int
    completion_units: int


class UsageAggregator:
    """
    Passive accumulator of model usage for one run.

    Workers call record() from the event loop without awaiting anything,
    so no locking is required. Totals only ever grow.
    """

    def __init__(self):
        self._records: list[UsageRecord] = []

    def record(self, step: str, usage: TokenUsage) -> UsageRecord:
        """Record usage for a step and return the stored record."""
        record = UsageRecord(
            step=step,
            prompt_units=max(0, usage.input_tokens),
            completion_units=max(0, usage.output_tokens),
        )
        self._records.append(record)
        return record

    def records(self) -> list[UsageRecord]:
        """All records in arrival order."""
        return list(self._records)

    def total(self) -> TokenUsage:
        total = TokenUsage()
        for record in self._records:
            total = total + TokenUsage(record.prompt_units, record.completion_units)
        return total

    def by_step(self) -> dict[str, TokenUsage]:
        """Totals grouped by step name, in first-seen order."""
        steps: dict[str, TokenUsage] = {}
        for record in self._records:
            current = steps.get(record.step, TokenUsage())
            steps[record.step] = current + TokenUsage(
                record.prompt_units, record.completion_units
            )
        return steps
