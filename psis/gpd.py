# Adapts code from:
"""Generalized Pareto distribution (GPD) for Pareto smoothed importance sampling
Included functions
------------------
gpdfitnew
    Estimate the paramaters for the Generalized Pareto Distribution (GPD).
gpinv
    Inverse Generalised Pareto distribution function.
References
----------
Jin Zhang and Michael A. Stephens (2009). A new and efficient estimation
method for the generalized Pareto distribution. Technometrics, 51(3):316-325.
Aki Vehtari, Andrew Gelman and Jonah Gabry (2017). Pareto
smoothed importance sampling. https://arxiv.org/abs/arXiv:1507.02646v5
"""
"""
Copyright 2017 Aki Vehtari, Tuomas Sivula
Redistribution and use in source and binary forms, with or without modification,
are permitted provided that the following conditions are met:
1. Redistributions of source code must retain the above copyright notice, this
list of conditions and the following disclaimer.
2. Redistributions in binary form must reproduce the above copyright notice,
this list of conditions and the following disclaimer in the documentation and/or
other materials provided with the distribution.
3. Neither the name of the copyright holder nor the names of its contributors
may be used to endorse or promote products derived from this software without
specific prior written permission.
THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND
ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED
WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE FOR
ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES
(INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES;
LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON
ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT
(INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS
SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE. """

import numpy as np

from psis.constants import PRIOR, SHRINKAGE_A, WEIGHT_EPS

def gpdfitnew(x, sort=False, return_quadrature=False):
    """Estimate the paramaters for the Generalized Pareto Distribution (GPD)
    Returns empirical Bayes estimate for the parameters of the two-parameter
    generalized Parato distribution given the data.
    Parameters
    ----------
    x : ndarray
        One dimensional array of positive exceedances, at least 5 elements
    sort : bool or ndarray, optional
        If False (default), `x` is assumed to be sorted in ascending order. If
        True, a sorted copy is used. An array of indices that would sort `x`
        can also be provided.
    return_quadrature : bool, optional
        If True, quadrature points and weights `ks` and `w` of the marginal
        posterior distribution of k are also returned.
    Returns
    -------
    k, sigma : float
        estimated parameter values
    ks, w : ndarray
        Quadrature points and weights of the marginal posterior distribution
        of `k`. Returned only if `return_quadrature` is True.
    Notes
    -----
    This function returns a negative of Zhang and Stephens's k, because it is
    more common parameterisation.
    """
    x = np.asarray(x, dtype=np.float64)
    if isinstance(sort, bool):
        if sort:
            x = np.sort(x)
    else:
        x = x[sort]
    N = x.shape[0]

    G = 30 + int(np.sqrt(N))
    # tied or underflowed exceedances give a NaN fit rather than numpy warnings
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        bs = 1 - np.sqrt(G / (np.arange(1, G + 1, dtype=float) - 0.5))
        bs /= PRIOR * x[int(N / 4 + 0.5) - 1]
        bs += 1 / x[-1]
        ks = np.mean(np.log1p(-bs[:, np.newaxis] * x[np.newaxis, :]), axis=1)
        L = N * (np.log(-bs / ks) - ks - 1)
        # overflowing terms only drive the weight to zero
        w = 1 / np.sum(np.exp(L[np.newaxis, :] - L[:, np.newaxis]), axis=1)

        # remove negligible weights; NaN weights are kept so a failed fit stays NaN
        ind_keep = np.logical_not(w < WEIGHT_EPS)
        w, bs, ks = w[ind_keep], bs[ind_keep], ks[ind_keep]
        w /= np.sum(w)

        # posterior mean for b
        b = np.sum(bs * w)
        # Estimate for k, note that we return a negative of Zhang and
        # Stephens's k, because it is more common parameterisation.
        k = np.mean(np.log1p(-b * x))
        # estimate for sigma; the factor N / (N - 0) of the published form cancels
        sigma = -k / b
    # weakly informative prior for k
    k = _shrink(k, N)

    if return_quadrature:
        return float(k), float(sigma), _shrink(ks, N), w
    return float(k), float(sigma)

def _shrink(k, N, a=SHRINKAGE_A):
    return k * N / (N + a) + a * 0.5 / (N + a)

def gpinv(p, k, sigma):
    """Inverse Generalised Pareto distribution function.
    Entries of `p` equal to 0 map to 0, entries equal to 1 to the upper end of
    the support; entries outside [0, 1] are returned unchanged. A non-positive
    `sigma` yields all NaN.
    """
    p = np.asarray(p, dtype=np.float64)
    if sigma <= 0:
        return np.full(p.shape, np.nan)
    ok = np.logical_and(p > 0, p < 1)
    if np.all(ok):
        return _gpinv_interior(p, k, sigma)
    x = p.copy()
    x[ok] = _gpinv_interior(p[ok], k, sigma)
    x[p == 0] = 0
    x[p == 1] = np.inf if k >= 0 else -sigma / k
    return x

def _gpinv_interior(p, k, sigma):
    # p strictly inside (0, 1)
    if np.abs(k) < np.finfo(float).eps:
        return -np.log1p(-p) * sigma
    return np.expm1(-k * np.log1p(-p)) / k * sigma
