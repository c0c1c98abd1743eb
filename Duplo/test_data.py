import unittest
import os
import sys

import numpy as np
import pandas as pd

# Ensure the repository root is in sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from Duplo.data import DataManager, as_feature_columns
from Duplo.errors import DataUnavailableError, DimensionMismatchError, InvalidArgumentError


class TestDataManager(unittest.TestCase):
    def setUp(self):
        self.features = [list(range(20)), [v * 0.5 for v in range(20)], [1.0] * 20]
        self.target = [float(v) for v in range(20)]

    def test_split_sizes(self):
        dm = DataManager(self.features, self.target)
        self.assertEqual((dm.train_size, dm.test_size), (12, 8))
        self.assertEqual(len(dm.X_train[0]), 12)
        self.assertEqual(len(dm.X_test[2]), 8)
        np.testing.assert_array_equal(dm.y_test, self.target[12:])
        self.assertEqual(list(dm.test_index), list(range(12, 20)))

    def test_default_names(self):
        dm = DataManager(self.features, self.target)
        self.assertEqual(dm.feature_names, ['x1', 'x2', 'x3'])

    def test_dataframe_input(self):
        df = pd.DataFrame({'gdp': range(10), 'rate': [0.1 * v for v in range(10)]})
        dm = DataManager(df, pd.Series(range(10)), train_ratio=0.5)
        self.assertEqual(dm.feature_names, ['gdp', 'rate'])
        self.assertEqual(dm.train_size, 5)

    def test_target_length_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            DataManager(self.features, self.target[:-1])

    def test_unequal_features(self):
        with self.assertRaises(InvalidArgumentError):
            as_feature_columns([[1, 2, 3], [1, 2]])

    def test_non_numeric(self):
        with self.assertRaises(InvalidArgumentError):
            DataManager([['a', 'b', 'c']], [1, 2, 3])
        with self.assertRaises(InvalidArgumentError):
            DataManager([[1.0, float('nan'), 3.0]], [1, 2, 3])

    def test_split_leaves_no_rows(self):
        with self.assertRaises(InvalidArgumentError):
            DataManager([[1, 2]], [1, 2], train_ratio=0.9)

    def test_to_frame(self):
        df = DataManager(self.features, self.target).to_frame()
        self.assertEqual(list(df.columns), ['x1', 'x2', 'x3', 'y', 'sample'])
        self.assertEqual((df['sample'] == 'in').sum(), 12)


class TestDataManagerLoad(unittest.TestCase):
    def test_load_concurrent(self):
        dm = DataManager.load(
            lambda: [[1, 2, 3, 4, 5], [2, 1, 2, 1, 2]],
            lambda: [1, 2, 3, 4, 5],
            feature_names=['a', 'b']
        )
        self.assertEqual(dm.n_obs, 5)
        self.assertEqual(dm.train_size, 3)
        self.assertEqual(dm.feature_names, ['a', 'b'])

    def test_loader_failure_is_fatal(self):
        def failing_loader():
            raise IOError("source offline")

        with self.assertLogs('Duplo.data', level='ERROR'):
            with self.assertRaises(DataUnavailableError):
                DataManager.load(lambda: [[1, 2, 3]], failing_loader)

    def test_loader_returns_nothing(self):
        with self.assertRaises(DataUnavailableError):
            DataManager.load(lambda: None, lambda: [1, 2, 3])


if __name__ == '__main__':
    unittest.main()
