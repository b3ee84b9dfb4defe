"""
kotoba - spaced-repetition deck engine for a personal vocabulary tool.

Packages:
- kotoba.srs: stage table, scheduler, card store, review ledger
- kotoba.session: review session state machine
- kotoba.analytics: streaks, heatmap, forecast and deck statistics
"""

__version__ = "0.1.0"
