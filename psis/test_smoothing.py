'''
Created on Oct 13, 2026

@author: simon
'''
import unittest
import warnings
import numpy as np
from joblib import Parallel, delayed

from psis.constants import K_MIN
from psis.logsum import sumlogs
from psis.smoothing import psislw, tail_size

def heavy_logweights(rs, N=500, outliers=5):
    lw = np.concatenate((rs.normal(size=N), np.full(outliers, 20.0)))
    return lw[rs.permutation(lw.shape[0])]

def _smooth(lw):
    lw_out = lw.copy()
    k = psislw(lw_out)
    return k, lw_out

class TailSizeTestCase(unittest.TestCase):

    def test_values(self):
        self.assertEqual(tail_size(1), 0)
        self.assertEqual(tail_size(10), 1)
        self.assertEqual(tail_size(25), 4)
        self.assertEqual(tail_size(30), 5)
        self.assertEqual(tail_size(505), 67)
        self.assertEqual(tail_size(1000), 94)
        self.assertEqual(tail_size(100000), 948)

    def test_Reff(self):
        self.assertEqual(tail_size(1000, Reff=0.5), 134)
        self.assertEqual(tail_size(1000, Reff=4.0), 47)

class PSISTestCase(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        rs = np.random.RandomState(seed=1)
        cls.lw = heavy_logweights(rs)
        cls.N = cls.lw.shape[0]
        cls.N_large = tail_size(cls.N)
        ind_sort = np.argsort(cls.lw, kind='stable')
        cls.ind_body = ind_sort[:cls.N - cls.N_large]
        cls.ind_tail = ind_sort[cls.N - cls.N_large:]

    def setUp(self):
        self.lw_shift = self.lw - np.max(self.lw)
        self.lw_out = self.lw.copy()
        self.k = psislw(self.lw_out)

    def test_k(self):
        self.assertTrue(np.isfinite(self.k))
        self.assertGreaterEqual(self.k, K_MIN)

    def test_normalized(self):
        self.assertLess(np.abs(np.sum(np.exp(self.lw_out)) - 1), 1e-9)
        self.assertLess(np.abs(sumlogs(self.lw_out)), 1e-9)

    def test_shape(self):
        self.assertEqual(self.lw_out.shape, self.lw.shape)
        self.assertTrue(np.all(np.isfinite(self.lw_out)))

    def test_body(self):
        # body only shifted by the normalization constant
        d = self.lw_out[self.ind_body] - self.lw_shift[self.ind_body]
        self.assertLess(np.ptp(d), 1e-9)

    def test_tail(self):
        d = np.mean(self.lw_out[self.ind_body] - self.lw_shift[self.ind_body])
        self.assertFalse(np.allclose(self.lw_out[self.ind_tail], self.lw_shift[self.ind_tail] + d))
        # smoothed tail preserves the ranking
        self.assertTrue(np.all(np.diff(self.lw_out[self.ind_tail]) >= 0))
        self.assertGreaterEqual(
            np.min(self.lw_out[self.ind_tail]), np.max(self.lw_out[self.ind_body]))

    def test_k_min(self):
        lw_out = self.lw.copy()
        k = psislw(lw_out, k_min=np.inf)
        self.assertEqual(k, self.k)
        self.assertLess(np.ptp(lw_out - self.lw), 1e-9)
        self.assertLess(np.abs(np.sum(np.exp(lw_out)) - 1), 1e-9)

    def test_Reff(self):
        lw_out = self.lw.copy()
        k = psislw(lw_out, Reff=0.5)
        self.assertTrue(np.isfinite(k))
        self.assertLess(np.abs(np.sum(np.exp(lw_out)) - 1), 1e-9)

    def test_offset(self):
        # invariant to the scaling of the raw weights
        lw_out = self.lw + 300.0
        k = psislw(lw_out)
        self.assertAlmostEqual(k, self.k, places=9)
        self.assertLess(np.max(np.abs(lw_out - self.lw_out)), 1e-9)

class PSISTestCaseLightTail(unittest.TestCase):

    def setUp(self):
        rs = np.random.RandomState(seed=2)
        self.lw = rs.uniform(-1, 0, size=1000)
        self.lw_out = self.lw.copy()
        self.k = psislw(self.lw_out)

    def test_k(self):
        self.assertLess(self.k, K_MIN)

    def test_unsmoothed(self):
        self.assertLess(np.ptp(self.lw_out - self.lw), 1e-9)

    def test_normalized(self):
        self.assertLess(np.abs(np.sum(np.exp(self.lw_out)) - 1), 1e-9)

class PSISTestCaseShortTail(unittest.TestCase):

    def setUp(self):
        rs = np.random.RandomState(seed=3)
        self.lw = rs.normal(size=10)
        self.lw_out = self.lw.copy()
        with self.assertWarns(RuntimeWarning):
            self.k = psislw(self.lw_out)

    def test_k(self):
        self.assertEqual(self.k, np.inf)

    def test_shifted(self):
        np.testing.assert_array_equal(self.lw_out, self.lw - np.max(self.lw))
        self.assertEqual(np.max(self.lw_out), 0.0)

    def test_not_normalized(self):
        self.assertGreater(np.sum(np.exp(self.lw_out)), 1.0)

    def test_boundary(self):
        lw = np.random.RandomState(seed=4).normal(size=30)
        with self.assertWarns(RuntimeWarning):
            self.assertEqual(psislw(lw[:25].copy()), np.inf)
        self.assertTrue(np.isfinite(psislw(lw.copy())))

class PSISTestCaseFailedFit(unittest.TestCase):

    def setUp(self):
        self.lw_out = np.zeros(100)
        with warnings.catch_warnings(record=True) as self.caught:
            warnings.simplefilter('always')
            self.k = psislw(self.lw_out)

    def test_k(self):
        self.assertTrue(np.isnan(self.k))

    def test_warning(self):
        # a single notice from psislw, no numpy floating point warnings
        self.assertEqual(len(self.caught), 1)
        self.assertIs(self.caught[0].category, RuntimeWarning)
        self.assertIn('GPD fit failed', str(self.caught[0].message))

    def test_unsmoothed(self):
        np.testing.assert_allclose(self.lw_out, np.full(100, -np.log(100)), rtol=1e-12)

    def test_assert_warns(self):
        with self.assertWarnsRegex(RuntimeWarning, 'GPD fit failed'):
            psislw(np.full(50, -3.0))

class PSISTestCaseInput(unittest.TestCase):

    def setUp(self):
        self.rs = np.random.RandomState(seed=5)

    def test_list(self):
        lw = self.rs.normal(size=200).tolist()
        k = psislw(lw)
        self.assertTrue(np.isfinite(k))
        self.assertIsInstance(lw, list)
        self.assertEqual(len(lw), 200)
        self.assertIsInstance(lw[0], float)
        self.assertLess(np.abs(np.sum(np.exp(lw)) - 1), 1e-9)

    def test_list_short(self):
        lw = [0.5, -1.0, 2.0]
        with self.assertWarns(RuntimeWarning):
            psislw(lw)
        self.assertEqual(lw, [-1.5, -3.0, 0.0])

    def test_float32(self):
        lw = self.rs.normal(size=200).astype(np.float32)
        psislw(lw)
        self.assertEqual(lw.dtype, np.float32)
        self.assertLess(np.abs(np.sum(np.exp(lw.astype(np.float64))) - 1), 1e-5)

    def test_invalid(self):
        for lw in ([], [[0.0, 1.0], [2.0, 3.0]], [0.0, np.nan], [0.0, np.inf]):
            with self.assertRaises(ValueError):
                psislw(np.array(lw))

    def test_invalid_unchanged(self):
        lw = np.array([1.0, np.nan, 2.0])
        with self.assertRaises(ValueError):
            psislw(lw)
        self.assertEqual(lw[0], 1.0)
        self.assertEqual(lw[2], 2.0)

class PSISTestCaseThreads(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        rs = np.random.RandomState(seed=6)
        cls.lws = [heavy_logweights(rs, N=1000, outliers=j) for j in range(8)]

    def test_parallel(self):
        res = [_smooth(lw) for lw in self.lws]
        res_par = Parallel(n_jobs=4, prefer='threads')(delayed(_smooth)(lw) for lw in self.lws)
        for (k, lw_out), (k_par, lw_out_par) in zip(res, res_par):
            self.assertEqual(k, k_par)
            np.testing.assert_array_equal(lw_out, lw_out_par)

if __name__ == '__main__':
    unittest.main()
