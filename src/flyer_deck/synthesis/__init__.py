"""Content synthesis: static, direct assembly and generative strategies."""

from flyer_deck.synthesis.base import SynthesisResult, Synthesizer
from flyer_deck.synthesis.strategies import SynthesisStrategy, strategy_for

__all__ = ["SynthesisResult", "SynthesisStrategy", "Synthesizer", "strategy_for"]
