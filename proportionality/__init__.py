# -*- coding: utf-8 -*-

__version__= "2026.10.19"
__author__ = "Josh L. Espinoza"
__email__ = "jespinoz@jcvi.org, jol.espinoz@gmail.com"
__url__ = "https://github.com/jolespin/proportionality"
__license__ = "BSD-3"
__developmental__ = True

# ==============
# Direct Exports
# ==============
__functions__ = [
    # Transforms
    "transform_closure", "transform_clr",
    # Pairwise
    "pairwise_vlr", "pairwise_phisym", "pairwise_sma", "pairwise_phi", "pairwise_rho", "pairwise_complete_covariance",
    # Summary
    "pairwise_statistics",
    # Aliases
    "clo", "clr", "vlr", "phisym", "sma", "phiDF",
    # Utilities
    "assert_acceptable_arguments", "check_compositional",
]
__classes__ = ["DomainError", "SMAFit"]

__all__ = sorted(__functions__ + __classes__)

from .proportionality import *
