"""Adaptive recommendation and feedback-tuning engine.

Turns already-computed game predictions plus market prices into tiered
betting recommendations, and turns graded historical outcomes into a
versioned confidence-tuning configuration.
"""
