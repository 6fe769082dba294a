"""Selection of the synthesis strategy for a plan item."""

from enum import Enum

from flyer_deck.content.models import ContentType
from flyer_deck.core.plan import DataSource, PlanItem


class SynthesisStrategy(str, Enum):
    STATIC = "static"  # fixed template, no synthesis
    DIRECT = "direct"  # assembled from tool payloads and context
    GENERATIVE = "generative"  # written by the synthesizer


# Researched slides whose content is fully determined by tool payloads
DIRECT_RESEARCHED_TYPES = frozenset(
    {ContentType.NEARBY, ContentType.HAZARD, ContentType.PRICE_ANALYSIS}
)


def strategy_for(item: PlanItem) -> SynthesisStrategy:
    if item.data_source == DataSource.STATIC:
        return SynthesisStrategy.STATIC
    if item.data_source in (DataSource.PRIMARY, DataSource.COMPUTED):
        return SynthesisStrategy.DIRECT
    if item.content_type in DIRECT_RESEARCHED_TYPES:
        return SynthesisStrategy.DIRECT
    return SynthesisStrategy.GENERATIVE
