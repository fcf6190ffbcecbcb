"""lazydocs - AI-powered README, PR description and changelog generator."""

__version__ = "1.0.0"
