"""
plaza

Deterministic small-business forecasting engine: revenue, costs, profit,
cash flow and a business health score from product economics.
"""
__version__ = "1.0.0"
