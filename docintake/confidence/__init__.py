"""
Confidence Scorer Module.

Turns recognized/expected field counts into an overall confidence.
"""

from .scorer import ConfidenceScorer, clamp

__all__ = ['ConfidenceScorer', 'clamp']
