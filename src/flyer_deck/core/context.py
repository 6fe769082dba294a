"""Caller input and the shared generation context.

The context is built once per run, before any worker starts, and is
read-only afterwards. Workers build tool parameters from it and nothing
else.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from flyer_deck.config.prompts import EXTRACTION_PROMPT, EXTRACTION_SYSTEM_PROMPT
from flyer_deck.core.exceptions import ContextBuildError
from flyer_deck.core.usage import TokenUsage
from flyer_deck.tools.registry import ToolRegistry
from flyer_deck.utils.llm import ImageInput
from flyer_deck.utils.logging import get_logger
from flyer_deck.utils.structured_llm import StructuredLLMCaller, StructuredOutputError


logger = get_logger(__name__)


class FlyerImage(BaseModel):
    """One flyer page, base64 encoded."""

    data: str = Field(min_length=1)
    media_type: Literal["image/png", "image/jpeg", "image/webp", "image/gif"]

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


class FlyerFacts(BaseModel):
    """Facts printed on the flyer."""

    property_name: str | None = None
    address: str | None = None
    price_man_yen: int | None = Field(default=None, ge=0, description="Price in 万円")
    layout: str | None = Field(default=None, description="e.g. 3LDK")
    area_m2: float | None = Field(default=None, ge=0)
    balcony_m2: float | None = Field(default=None, ge=0)
    floor: str | None = None
    built_year: str | None = None
    management_fee_yen: int | None = Field(default=None, ge=0)
    repair_reserve_yen: int | None = Field(default=None, ge=0)
    station_access: str | None = None
    features: list[str] = Field(default_factory=list)

    def is_complete(self) -> bool:
        """Enough to skip flyer extraction."""
        return bool(self.property_name and self.address and self.price_man_yen)

    def merged_over(self, base: "FlyerFacts") -> "FlyerFacts":
        """Facts from self where set, otherwise from base."""
        merged = base.model_dump()
        for key, value in self.model_dump().items():
            if value not in (None, "", []):
                merged[key] = value
        return FlyerFacts.model_validate(merged)


class PrimaryInput(BaseModel):
    """Everything the caller supplies for one deck."""

    flyer_images: list[FlyerImage] = Field(min_length=1)
    customer_name: str = Field(min_length=1)
    agent_name: str = Field(min_length=1)
    agent_phone: str | None = None
    agent_email: str | None = None
    company_name: str | None = None
    store_name: str | None = None

    # Financing, amounts in 万円
    annual_income_man_yen: int | None = Field(default=None, ge=0)
    down_payment_man_yen: int = Field(default=0, ge=0)
    interest_rate_percent: float | None = Field(default=None, ge=0, le=20)
    loan_term_years: int | None = Field(default=None, ge=1, le=50)

    facts: FlyerFacts | None = None
    created_date: date | None = None


class GeoLocation(BaseModel):
    model_config = {"frozen": True}

    address: str
    latitude: float
    longitude: float


class GenerationContext(BaseModel):
    """Read-only facts shared by every worker in a run."""

    model_config = {"frozen": True}

    input: PrimaryInput
    facts: FlyerFacts
    location: GeoLocation | None = None
    created_date: str
    interest_rate_percent: float
    loan_term_years: int

    @property
    def property_name(self) -> str:
        return self.facts.property_name or self.facts.address or "本物件"

    @property
    def flyer_image_urls(self) -> list[str]:
        return [image.data_url for image in self.input.flyer_images]

    def prompt_facts(self) -> dict[str, Any]:
        """Facts worth showing to the model, without image payloads."""
        facts = self.facts.model_dump(exclude_none=True)
        if self.location is not None:
            facts["geocoded_address"] = self.location.address
        return facts


@dataclass
class ContextBuildResult:
    context: GenerationContext
    extraction_usage: TokenUsage | None = None


class FactExtractor(ABC):
    """Reads FlyerFacts from a flyer image."""

    @abstractmethod
    async def extract(self, image: FlyerImage) -> tuple[FlyerFacts, TokenUsage]:
        ...


class LLMFactExtractor(FactExtractor):
    """Extracts facts with a vision-capable model via structured output."""

    def __init__(self, caller: StructuredLLMCaller, model: str = "sonnet"):
        self._caller = caller
        self._model = model

    async def extract(self, image: FlyerImage) -> tuple[FlyerFacts, TokenUsage]:
        result = await self._caller.call_with_usage(
            prompt=EXTRACTION_PROMPT,
            response_model=FlyerFacts,
            system=EXTRACTION_SYSTEM_PROMPT,
            model=self._model,
            images=[ImageInput(data=image.data, media_type=image.media_type)],
        )
        return result.data, result.usage


class ContextBuilder:
    """
    Builds the GenerationContext for a run.

    Steps:
    1. Validate the caller input
    2. Extract flyer facts (skipped when the caller supplied complete facts)
    3. Geocode the address (failure leaves location unset; not fatal)

    Any failure in steps 1-2 raises ContextBuildError.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        extractor: FactExtractor | None = None,
        default_interest_rate: float = 0.5,
        default_loan_term_years: int = 35,
    ):
        self._registry = registry
        self._extractor = extractor
        self._default_interest_rate = default_interest_rate
        self._default_loan_term_years = default_loan_term_years

    async def build(self, primary_input: PrimaryInput | dict[str, Any]) -> ContextBuildResult:
        if not isinstance(primary_input, PrimaryInput):
            try:
                primary_input = PrimaryInput.model_validate(primary_input)
            except ValidationError as e:
                raise ContextBuildError(f"Invalid input: {e.error_count()} errors", stage="validate") from e

        supplied = primary_input.facts or FlyerFacts()
        facts, usage = await self._resolve_facts(primary_input, supplied)

        location = await self._geocode(facts.address)

        created = primary_input.created_date or date.today()
        context = GenerationContext(
            input=primary_input,
            facts=facts,
            location=location,
            created_date=f"{created.year}年{created.month}月{created.day}日",
            interest_rate_percent=(
                primary_input.interest_rate_percent
                if primary_input.interest_rate_percent is not None
                else self._default_interest_rate
            ),
            loan_term_years=primary_input.loan_term_years or self._default_loan_term_years,
        )
        logger.info(
            "Generation context built",
            property_name=context.property_name,
            geocoded=location is not None,
            extracted=usage is not None,
        )
        return ContextBuildResult(context=context, extraction_usage=usage)

    async def _resolve_facts(
        self,
        primary_input: PrimaryInput,
        supplied: FlyerFacts,
    ) -> tuple[FlyerFacts, TokenUsage | None]:
        if supplied.is_complete() or self._extractor is None:
            return supplied, None

        try:
            extracted, usage = await self._extractor.extract(primary_input.flyer_images[0])
        except StructuredOutputError as e:
            raise ContextBuildError(f"Flyer could not be read: {e}", stage="extract") from e
        except Exception as e:
            raise ContextBuildError(f"Flyer extraction failed: {e}", stage="extract") from e

        return supplied.merged_over(extracted), usage

    async def _geocode(self, address: str | None) -> GeoLocation | None:
        if not address:
            logger.warning("No address available, skipping geocoding")
            return None
        result = await self._registry.execute("geocode", {"address": address})
        if not result.ok:
            logger.warning("Geocoding failed, location-based slides will degrade", error=result.error)
            return None
        payload = result.payload
        try:
            return GeoLocation(
                address=payload.get("address") or address,
                latitude=payload["latitude"],
                longitude=payload["longitude"],
            )
        except (KeyError, ValidationError) as e:
            logger.warning("Geocoder returned an unusable payload", error=str(e))
            return None
