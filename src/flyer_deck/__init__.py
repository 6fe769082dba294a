"""Flyer deck: concurrent slide generation from real-estate flyers."""

__version__ = "0.1.0"
