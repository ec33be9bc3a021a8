# slot_engine/__init__.py
"""
Slot Outcome Engine

Multi-line slot machine outcome engine:
- Weighted symbol draws from a seedable RNG
- Payline and scatter win evaluation
- Spin sessions with running RTP counters
- Monte Carlo RTP analyzer for tuning symbol weights and pay tables
"""

__version__ = "1.0.0"
__description__ = "Multi-line slot machine outcome engine and RTP analyzer"
