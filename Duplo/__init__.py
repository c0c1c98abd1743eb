# =============================================================================
# Package: DUPLO
# Purpose: Expose the matrix core, subset generation, regression models,
#          diagnostics, ranking, stacking and the search pipeline in one API.
# =============================================================================

"""
Project Duplo API

This package provides:
  - Matrix for the dense linear algebra behind OLS fitting.
  - Subset generation (generate_subsets, generate_subsets_with_size).
  - Transform (LV, SQ, CB, LN) applied to every non-intercept design cell.
  - RegressionModel with memoized coefficients, R², Durbin–Watson,
    Goldfeld–Quandt and Farrar–Glauber diagnostics.
  - Diagnostic tests and TestSet under test.py / testset.py.
  - compare_models / select_top for best-first ranking.
  - EnsembleBuilder and PairedModel for stacked pair models.
  - DataManager for input validation, concurrent loading and the train split.
  - ModelSearch for the end-to-end pipeline, and report classes for output.

Importing * from this package will provide all top-level modules and classes.
"""

from .errors import *
from .config import *
from .matrix import *
from .subset import *
from .transform import *
from .test import *
from .testset import *
from .model import *
from .data import *
from .family import *
from .compare import *
from .report import *
from .ensemble import *
from .search import *
