"""Remote node status probing over chained SSH hops."""

__version__ = "0.1.0"
