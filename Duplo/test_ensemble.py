import unittest
import os
import sys

import numpy as np

# Ensure the repository root is in sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from Duplo.ensemble import EnsembleBuilder, PairedModel
from Duplo.family import produce_models_family
from Duplo.compare import select_top
from Duplo.report import ModelReport, ReportSet
from Duplo.errors import DimensionMismatchError, InvalidArgumentError


class TestEnsembleBuilder(unittest.TestCase):
    def setUp(self):
        rng = np.random.default_rng(2024)
        n = 20
        self.features = [rng.uniform(1, 10, n), rng.uniform(1, 10, n), rng.uniform(1, 10, n)]
        self.y = 3 + 2 * self.features[0] - self.features[1] + 0.5 * self.features[2] + rng.normal(0, 1, n)
        self.train = [f[:12] for f in self.features]
        self.test = [f[12:] for f in self.features]
        self.family = produce_models_family(self.train, self.y[:12])
        for model in self.family:
            model.evaluate()
        self.top = select_top(list(self.family), 3)

    def test_family_size_and_ids(self):
        self.assertEqual(len(self.family), 7)
        self.assertEqual(self.family.model_ids[0], 'LV[2]')
        self.assertEqual(self.family.model_ids[-1], 'LV[0,1,2]')

    def test_pairs(self):
        builder = EnsembleBuilder(self.top, self.y[:12])
        self.assertEqual(len(builder.pairs()), 3)

    def test_stacked_design_uses_base_predictions(self):
        builder = EnsembleBuilder(self.top[:2], self.y[:12])
        stacked = builder.build_stacked_models()
        self.assertEqual(len(stacked), 1)
        model = stacked[0]
        self.assertIsInstance(model, PairedModel)
        a, b = model.base_models
        np.testing.assert_array_equal(model.design.get_column(1), a.get_all_predictions())
        np.testing.assert_array_equal(model.design.get_column(2), b.get_all_predictions())
        self.assertEqual(model.model_id, f"STACK({a.model_id}|{b.model_id})")

    def test_predict_held_out(self):
        builder = EnsembleBuilder(self.top[:2], self.y[:12])
        forecast = builder.predict(self.test, self.y[12:])
        self.assertEqual(list(forecast.columns), ['predicted', 'actual', 'error'])
        self.assertEqual(len(forecast), 8)
        self.assertTrue(np.all(np.isfinite(forecast['predicted'])))
        np.testing.assert_array_equal(forecast['actual'].to_numpy(), self.y[12:])

    def test_stacked_prediction_matches_manual(self):
        builder = EnsembleBuilder(self.top[:2], self.y[:12])
        best = builder.select_best()
        row = [f[0] for f in self.test]
        a, b = best.base_models
        manual = best.predict_y([1.0, a.predict_from_features(row), b.predict_from_features(row)])
        self.assertAlmostEqual(best.predict_from_features(row), manual)

    def test_requires_two_models(self):
        with self.assertRaises(InvalidArgumentError):
            EnsembleBuilder(self.top[:1], self.y[:12])

    def test_target_length_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            EnsembleBuilder(self.top, self.y)

    def test_predict_length_mismatch(self):
        builder = EnsembleBuilder(self.top[:2], self.y[:12])
        with self.assertRaises(DimensionMismatchError):
            builder.predict(self.test, self.y[13:])

    def test_singular_pair_is_skipped(self):
        # the same model twice gives identical regressor columns
        model = self.top[0]
        builder = EnsembleBuilder([model, model, self.top[1]], self.y[:12])
        with self.assertLogs('Duplo.ensemble', level='WARNING'):
            fitted = builder.evaluate()
        self.assertEqual(len(fitted), 2)
        self.assertEqual(builder.error_log[0][1], 'SingularMatrixError')


class TestReports(unittest.TestCase):
    def setUp(self):
        x1 = np.array([1, 2, 3, 4, 5, 6, 7, 8, 9], dtype=float)
        x2 = np.array([3, 1, 4, 1, 5, 9, 2, 6, 5], dtype=float)
        y = 1 + x1 - 0.5 * x2 + np.array([0.1, -0.2, 0.1, 0.0, -0.1, 0.2, -0.1, 0.1, -0.1])
        self.family = produce_models_family([x1, x2], y, feature_names=['gdp', 'rate'])

    def test_summary_keys(self):
        summary = ModelReport(self.family[-1]).summary()
        for key in ('coefficients', 'r_square', 'dw', 'has_autocorrelation', 'gq_ratio',
                    'gq_flag', 'fg_statistic', 'has_multicollinearity'):
            self.assertIn(key, summary.index)
        self.assertEqual(len(summary['coefficients']), 3)

    def test_params_table(self):
        tbl = self.family[-1].report.show_params_tbl()
        self.assertEqual(list(tbl.index), ['const', 'gdp', 'rate'])
        self.assertTrue(np.isnan(tbl.loc['const', 'vif']))
        self.assertGreaterEqual(tbl.loc['gdp', 'vif'], 1.0)

    def test_test_tables(self):
        tables = self.family[0].report.show_test_tbl()
        self.assertIn('Residual Autocorrelation', tables)
        self.assertIn('Multicollinearity', tables)

    def test_summary_set(self):
        df = ReportSet(self.family).show_summary_set()
        self.assertEqual(list(df.index), self.family.model_ids)


if __name__ == '__main__':
    unittest.main()
