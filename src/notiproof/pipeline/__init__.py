"""Social proof event pipeline: normalization, eligibility and weighted queues."""

__version__ = "0.1.0"
