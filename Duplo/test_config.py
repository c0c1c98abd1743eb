import unittest
import os
import sys
import tempfile

# Ensure the repository root is in sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from Duplo.config import DiagnosticConfig, PipelineConfig, load_config, round_half_up
from Duplo.transform import Transform
from Duplo.errors import InvalidArgumentError


class TestConfig(unittest.TestCase):
    def _write(self, text):
        handle = tempfile.NamedTemporaryFile('w', suffix='.yaml', delete=False)
        handle.write(text)
        handle.close()
        self.addCleanup(os.remove, handle.name)
        return handle.name

    def test_bundled_defaults(self):
        cfg = load_config()
        self.assertEqual(cfg.diagnostics, DiagnosticConfig())
        self.assertEqual(cfg.diagnostics.dl, 1.53)
        self.assertEqual(cfg.diagnostics.du, 1.74)
        self.assertEqual(cfg.diagnostics.fisher_value, 2.98)
        self.assertEqual(cfg.diagnostics.x_square, 16.8)
        self.assertEqual(cfg.train_ratio, 0.6)
        self.assertEqual(cfg.top_n, 10)
        self.assertEqual(cfg.gq_sort_column, 1)

    def test_partial_override(self):
        path = self._write("diagnostics:\n  fisher_value: 3.5\npipeline:\n  top_n: 4\n")
        cfg = load_config(path)
        self.assertEqual(cfg.diagnostics.fisher_value, 3.5)
        self.assertEqual(cfg.diagnostics.dl, 1.53)
        self.assertEqual(cfg.top_n, 4)

    def test_unknown_key(self):
        path = self._write("pipeline:\n  top_k: 4\n")
        with self.assertRaises(InvalidArgumentError):
            load_config(path)

    def test_section_not_mapping(self):
        path = self._write("diagnostics: 3\n")
        with self.assertRaises(InvalidArgumentError):
            load_config(path)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_config(os.path.join(tempfile.gettempdir(), 'duplo-does-not-exist.yaml'))

    def test_invalid_values(self):
        with self.assertRaises(InvalidArgumentError):
            DiagnosticConfig(dl=1.8, du=1.7)
        with self.assertRaises(InvalidArgumentError):
            DiagnosticConfig(fisher_value=float('nan'))
        with self.assertRaises(InvalidArgumentError):
            PipelineConfig(train_ratio=1.0)
        with self.assertRaises(InvalidArgumentError):
            PipelineConfig(top_n=1)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(12.5), 13)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(6.49), 6)
        self.assertEqual(PipelineConfig().train_size(20), 12)


class TestTransform(unittest.TestCase):
    def test_apply(self):
        self.assertEqual(Transform.IDENTITY.apply(3.0), 3.0)
        self.assertEqual(Transform.SQUARE.apply(3.0), 9.0)
        self.assertEqual(Transform.CUBE.apply(-2.0), -8.0)
        self.assertAlmostEqual(Transform.LOG.apply(1.0), 0.0)

    def test_log_non_positive_is_not_finite(self):
        self.assertEqual(Transform.LOG.apply(0.0), float('-inf'))

    def test_from_name(self):
        self.assertIs(Transform.from_name('sq'), Transform.SQUARE)
        self.assertIs(Transform.from_name('cube'), Transform.CUBE)
        with self.assertRaises(InvalidArgumentError):
            Transform.from_name('EXP')


if __name__ == '__main__':
    unittest.main()
