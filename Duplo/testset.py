# =============================================================================
# module: testset.py
# Purpose: Aggregate the diagnostic tests of one regression model
# Key Types/Classes: TestSet
# Key Functions: ols_testset_func
# Dependencies: pandas, typing, .test module classes
#
# TESTSET FUNCTION REQUIREMENTS:
# ==============================
# Testset functions define the measure tests FIRST:
# 1. 'Fit Measures' - FitMeasure for R² and Adj R²
# 2. 'IS Error Measures' - ErrorMeasure for in-sample ME, MAE, RMSE
# followed by the assumption tests in the order the ranking applies them.
# =============================================================================

from typing import Any, Dict, List, Tuple, TYPE_CHECKING

from .test import (
    AutocorrTest,
    ErrorMeasure,
    FitMeasure,
    HomoscedasticityTest,
    ModelTestBase,
    MultiCollinearityTest,
)

if TYPE_CHECKING:
    from .model import RegressionModel


# ----------------------------------------------------------------------------
# TestSet class
# ----------------------------------------------------------------------------

class TestSet:
    """
    Aggregator for ModelTestBase instances, with filtering and reporting utilities.

    Parameters
    ----------
    tests : dict
        Mapping from test alias (str) to ModelTestBase instance.
    """
    # not a unittest/pytest class
    __test__ = False

    def __init__(
        self,
        tests: Dict[str, ModelTestBase]
    ):
        # Override each test's alias and collect in defined order
        self.tests: List[ModelTestBase] = []
        for alias, test_obj in tests.items():
            test_obj.alias = alias
            self.tests.append(test_obj)

    @property
    def all_test_results(self) -> Dict[str, Any]:
        """
        Return the test_result for every test in this set, keyed by the
        test's display name, including both active and inactive tests.
        """
        return {t.name: t.test_result for t in self.tests}

    @property
    def test_info(self) -> Dict[str, Dict[str, str]]:
        """
        Key information of each test.

        Returns
        -------
        dict
            Keys: test names
            Values: dict containing 'filter_mode', 'filter_on' and 'desc'
        """
        return {
            test.name: {
                'filter_mode': test.filter_mode,
                'filter_on': test.filter_on,
                'desc': test.filter_mode_desc,
            }
            for test in self.tests
        }

    def filter_pass(
        self,
        fast_filter: bool = False
    ) -> Tuple[bool, List[str]]:
        """
        Run active tests and return overall pass flag and failed test names.

        Parameters
        ----------
        fast_filter : bool, default False
            If True, stops on first failure.

        Returns
        -------
        passed : bool
            True if all active tests pass.
        failed_tests : list of str
            Names of tests that did not pass.
        """
        failed = []
        for t in self.tests:
            if not t.filter_on:
                continue
            if not t.test_filter:
                failed.append(t.name)
                if fast_filter:
                    return False, failed
        return len(failed) == 0, failed

    def __iter__(self):
        return iter(self.tests)

    def __len__(self) -> int:
        return len(self.tests)


def ols_testset_func(mdl: 'RegressionModel') -> Dict[str, ModelTestBase]:
    """
    Default tests for a fitted RegressionModel:
    - Fit and in-sample error measures (reporting only)
    - Residual autocorrelation (Durbin–Watson)
    - Residual heteroscedasticity (Goldfeld–Quandt)
    - Regressor multicollinearity (Farrar–Glauber)

    All statistics come from the model's memoized diagnostics, so building
    the set never refits anything.
    """
    config = mdl.config
    tests: Dict[str, ModelTestBase] = {}

    #---Fit & Error Measures (inactive for filtering)---
    tests['Fit Measures'] = FitMeasure(
        actual=mdl.target,
        predicted=mdl.get_all_predictions(),
        n_features=mdl.n_regressors
    )
    tests['IS Error Measures'] = ErrorMeasure(
        actual=mdl.target,
        predicted=mdl.get_all_predictions()
    )

    #---Assumption tests---
    tests['Residual Autocorrelation'] = AutocorrTest(
        dw=mdl.calculate_auto_correlation(),
        config=config
    )
    tests['Residual Heteroscedasticity'] = HomoscedasticityTest(
        ratio=mdl.calculate_homoscedasticity(),
        group_size=mdl.gq_group_size,
        n_params=mdl.n_regressors + 1,
        config=config
    )
    tests['Multicollinearity'] = MultiCollinearityTest(
        statistic=mdl.calculate_multi_collinearity(),
        n_regressors=mdl.n_regressors,
        exog=mdl.exog_frame,
        config=config
    )
    return tests
