# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
"""
Forecast Engine Core
====================

Correlation-aware evidence aggregation for yes/no forecasts.
"""

__version__ = "0.3.0"

# Versioning for saved forecast cards (reproducibility).
# When changing weights/caps/aggregation, bump this string.
SCORING_VERSION = "loglr_cluster_v2"
