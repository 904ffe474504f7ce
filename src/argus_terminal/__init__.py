"""
Argus Terminal - crypto market analysis and paper trading

Technical indicators, the seven-module Council, risk levels, strategy
backtests and a simulated portfolio driven manually or by the AutoPilot.
"""

from __future__ import annotations

__version__ = "1.0.0"

__all__ = ["__version__"]
