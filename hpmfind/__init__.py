"""Edge-segment filtering, line fitting, NFA validation and ellipse marker selection."""

__version__ = "0.1.0"