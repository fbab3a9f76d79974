"""
FeedSpine: ingestion, fallback orchestration and cross-source correlation
for a live situational dashboard.

Subpackages:
    core           errors, logging, settings, models, caches, baselines
    execution      guarded scheduler, retry, timeouts, render gate, fetch pipeline
    fallback       live → generative → static ladders per data domain
    correlation    baselines, geo-convergence, surge and keyword signals
    orchestration  the load driver and its sink contracts
"""

__version__ = "0.1.0"
