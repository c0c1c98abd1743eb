import unittest
import os
import sys
from math import comb

# Ensure the repository root is in sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from Duplo.subset import Subset, generate_subsets, generate_subsets_with_size
from Duplo.errors import InvalidArgumentError


class TestGenerateSubsets(unittest.TestCase):
    def test_two_items_order(self):
        subsets = generate_subsets(['a', 'b'])
        self.assertEqual([s.to_list() for s in subsets], [['b'], ['a'], ['a', 'b']])

    def test_three_items_binary_counting(self):
        subsets = generate_subsets(['a', 'b', 'c'])
        self.assertEqual(
            [s.indices for s in subsets],
            [(2,), (1,), (1, 2), (0,), (0, 2), (0, 1), (0, 1, 2)]
        )

    def test_count_and_uniqueness(self):
        items = list(range(5))
        subsets = generate_subsets(items)
        self.assertEqual(len(subsets), 2 ** 5 - 1)
        self.assertEqual(len({s.indices for s in subsets}), len(subsets))
        self.assertTrue(all(len(s) > 0 for s in subsets))

    def test_items_keep_original_order(self):
        for s in generate_subsets(['x', 'y', 'z', 'w']):
            self.assertEqual(list(s.indices), sorted(s.indices))

    def test_empty(self):
        self.assertEqual(generate_subsets([]), [])

    def test_rejects_non_sequence(self):
        for bad in (None, 5, 'abc', {'a': 1}):
            with self.assertRaises(InvalidArgumentError):
                generate_subsets(bad)

    def test_with_size(self):
        items = list('abcde')
        for k in range(1, 6):
            subsets = generate_subsets_with_size(items, k)
            self.assertEqual(len(subsets), comb(5, k))
            self.assertTrue(all(s.count() == k for s in subsets))
        # the empty subset is never generated
        self.assertEqual(generate_subsets_with_size(items, 0), [])

    def test_with_size_larger_than_items(self):
        self.assertEqual(generate_subsets_with_size(['a', 'b'], 3), [])

    def test_with_size_invalid(self):
        with self.assertRaises(InvalidArgumentError):
            generate_subsets_with_size(['a'], -1)

    def test_subset_from_vector(self):
        s = Subset.from_vector([True, False, True], ['a', 'b', 'c'])
        self.assertEqual(s.to_list(), ['a', 'c'])
        self.assertEqual(s.mask(3), [True, False, True])


if __name__ == '__main__':
    unittest.main()
