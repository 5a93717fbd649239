"""Edge-matching tiling puzzle engine with a Gymnasium interface."""

__version__ = "0.1.0"
