"""
Fraud-Scoring Engine
====================

Deterministic, statistics-based detectors over one closed snapshot of
marketplace transactions:

- Transaction value anomalies (per buyer/seller pair, two-sided 3-sigma)
- Buyer/seller collusion (pair volume vs. all pairs, one-sided)
- Promotion misuse (buyer/promo/day usage vs. all usages, one-sided)
- Suspicious timing (buyer/seller/hour bursts or nocturnal hours)
- Flagged-user interactions and suspicion-level bucketing

Each detector runs as Aggregator -> Estimator -> Classifier -> Propagator.
"""

__version__ = "1.0.0"
