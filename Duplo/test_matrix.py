import unittest
import os
import sys

import numpy as np

# Ensure the repository root is in sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from Duplo.matrix import Matrix
from Duplo.errors import DimensionMismatchError, InvalidArgumentError, SingularMatrixError, ErrorKind


class TestMatrix(unittest.TestCase):
    def setUp(self):
        self.a = Matrix([[1, 2, 3], [4, 5, 6]])
        self.square = Matrix([[4.0, 7.0], [2.0, 6.0]])

    def test_size_and_accessors(self):
        self.assertEqual(self.a.size(), (2, 3))
        np.testing.assert_array_equal(self.a.get_row(1), [4, 5, 6])
        np.testing.assert_array_equal(self.a.get_column(2), [3, 6])

    def test_accessor_returns_copy(self):
        col = self.a.get_column(0)
        col[0] = 100
        self.assertEqual(self.a.get_column(0)[0], 1.0)

    def test_index_out_of_range(self):
        with self.assertRaises(InvalidArgumentError):
            self.a.get_row(2)
        with self.assertRaises(InvalidArgumentError):
            self.a.get_column(-1)

    def test_invalid_data(self):
        for bad in ([], [[1, 2], [3]], "abc", [1, 2, 3], [['a', 'b']]):
            with self.assertRaises(InvalidArgumentError):
                Matrix(bad)

    def test_double_transpose_is_identity(self):
        self.assertEqual(self.a.transpose().transpose(), self.a)
        self.assertEqual(self.a.transpose().size(), (3, 2))

    def test_multiply(self):
        product = self.a.multiply(self.a.transpose())
        np.testing.assert_array_equal(product.to_array(), [[14, 32], [32, 77]])

    def test_multiply_dimension_mismatch(self):
        with self.assertRaises(DimensionMismatchError) as ctx:
            self.a.multiply(self.a)
        self.assertIs(ctx.exception.kind, ErrorKind.DIMENSION_MISMATCH)

    def test_det_and_inverse(self):
        self.assertAlmostEqual(self.square.det(), 10.0)
        inv = self.square.inverse()
        identity = self.square.multiply(inv).to_array()
        np.testing.assert_allclose(identity, np.eye(2), atol=1e-12)

    def test_non_square_det(self):
        with self.assertRaises(DimensionMismatchError):
            self.a.det()
        with self.assertRaises(DimensionMismatchError):
            self.a.inverse()

    def test_singular_inverse(self):
        singular = Matrix([[1.0, 2.0], [2.0, 4.0]])
        self.assertTrue(singular.is_singular())
        with self.assertRaises(SingularMatrixError):
            singular.inverse()

    def test_singularity_is_scale_invariant(self):
        tiny = Matrix([[1e-8, 0.0], [0.0, 1e-8]])
        self.assertFalse(tiny.is_singular())

    def test_map_receives_position(self):
        mapped = self.a.map(lambda value, row, col: value if col == 0 else row * 10 + col)
        np.testing.assert_array_equal(mapped.to_array(), [[1, 1, 2], [4, 11, 12]])

    def test_immutable(self):
        arr = self.a.to_array()
        arr[0, 0] = -1
        self.assertEqual(self.a.get_row(0)[0], 1.0)

    def test_column(self):
        col = Matrix.column([1, 2, 3])
        self.assertEqual(col.size(), (3, 1))


if __name__ == '__main__':
    unittest.main()
