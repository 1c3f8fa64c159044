"""
Ensemble App - Rolling Time-Series Store and Indicator Ensemble Engine

Maintains bounded, crash-durable price/volume histories for a dynamic set
of instruments and combines eleven technical indicators into a single
confidence-scored buy/sell/hold recommendation per instrument.
"""

__version__ = "0.1.0"
__author__ = "Ensemble App Team"
