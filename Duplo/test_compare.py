import unittest
from unittest.mock import MagicMock
import os
import sys

# Ensure the repository root is in sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from Duplo.compare import compare_models, r_square_distance, rank_models, select_top
from Duplo.config import DiagnosticConfig
from Duplo.errors import InvalidArgumentError


def _mock_model(model_id, r2, autocorr=False, hetero=False, multi=False):
    mdl = MagicMock()
    mdl.model_id = model_id
    mdl.config = DiagnosticConfig()
    mdl.calculate_r_square.return_value = r2
    mdl.has_auto_correlation.return_value = autocorr
    mdl.has_homoscedasticity.return_value = hetero
    mdl.has_multi_collinearity.return_value = multi
    return mdl


class TestCompareModels(unittest.TestCase):
    def test_clear_r_square_gap_wins(self):
        good = _mock_model('A', 0.95, autocorr=True, hetero=True, multi=True)
        poor = _mock_model('B', 0.60)
        self.assertLess(compare_models(good, poor), 0)
        self.assertGreater(compare_models(poor, good), 0)
        # flags are not consulted when the gap decides
        good.has_auto_correlation.assert_not_called()

    def test_autocorrelation_breaks_tie(self):
        a = _mock_model('A', 0.90, autocorr=True)
        b = _mock_model('B', 0.88)
        self.assertGreater(compare_models(a, b), 0)
        self.assertLess(compare_models(b, a), 0)

    def test_homoscedasticity_flag_second(self):
        a = _mock_model('A', 0.90, hetero=True)
        b = _mock_model('B', 0.92, multi=True)
        self.assertGreater(compare_models(a, b), 0)

    def test_multicollinearity_flag_last(self):
        a = _mock_model('A', 0.90, multi=True)
        b = _mock_model('B', 0.90)
        self.assertGreater(compare_models(a, b), 0)

    def test_full_tie(self):
        a = _mock_model('A', 0.90)
        b = _mock_model('B', 0.85)
        self.assertEqual(compare_models(a, b), 0)

    def test_undefined_r_square_ranks_last(self):
        a = _mock_model('A', float('nan'))
        b = _mock_model('B', 0.2)
        self.assertEqual(r_square_distance(a), float('inf'))
        self.assertGreater(compare_models(a, b), 0)

    def test_custom_tolerance(self):
        a = _mock_model('A', 0.92, autocorr=True)
        b = _mock_model('B', 0.90)
        self.assertGreater(compare_models(a, b), 0)
        cfg = DiagnosticConfig(r_square_tolerance=0.01)
        self.assertLess(compare_models(a, b, cfg), 0)


class TestRanking(unittest.TestCase):
    def test_transitive_when_gaps_exceed_tolerance(self):
        a = _mock_model('A', 0.40)
        b = _mock_model('B', 0.95)
        c = _mock_model('C', 0.70)
        ranked = rank_models([a, b, c])
        self.assertEqual([m.model_id for m in ranked], ['B', 'C', 'A'])

    def test_stable_for_ties(self):
        models = [_mock_model(name, 0.9) for name in 'PQRS']
        self.assertEqual([m.model_id for m in rank_models(models)], list('PQRS'))

    def test_select_top(self):
        models = [_mock_model('A', 0.5), _mock_model('B', 0.99), _mock_model('C', 0.75)]
        self.assertEqual([m.model_id for m in select_top(models, 2)], ['B', 'C'])
        self.assertEqual(len(select_top(models, 10)), 3)

    def test_select_top_invalid(self):
        with self.assertRaises(InvalidArgumentError):
            select_top([], -1)


if __name__ == '__main__':
    unittest.main()
