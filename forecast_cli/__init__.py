# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
Forecast CLI Module

Commands:
- run <evidence_file>: Aggregate evidence into a forecast card
- prior <trials> <successes>: Base-rate prior
- blend <p_neutral> <market>: Market-blended probability

Usage:
    python -m forecast_cli run evidence.json --trials 20 --successes 7 --market 0.42
    python -m forecast_cli prior 10 3
    python -m forecast_cli blend 0.62 0.40 --alpha 0.1
"""

from forecast_cli.forecast_cmd import main

__all__ = ["main"]
