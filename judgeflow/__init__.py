"""judgeflow: certification, winner aggregation and co-signature quorum for judged competitions."""

__version__ = "0.1.0"
