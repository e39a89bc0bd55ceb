# Adapts code from:
"""Pareto smoothed importance sampling (PSIS)
Smooths one vector of log importance weights in place and returns the Pareto
shape diagnostic k.
Included functions
------------------
psislw
    Pareto smoothed importance sampling.
tail_size
    Number of right tail samples the GPD is fitted to.
References
----------
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

import warnings
import numpy as np

from psis.constants import K_MIN, CUTOFF_MIN
from psis.gpd import gpdfitnew, gpinv
from psis.logsum import sumlogs

def tail_size(N, Reff=1.0):
    return int(np.ceil(min(0.2 * N, 3 * np.sqrt(N / Reff)))) - 1

def psislw(lw, Reff=1.0, k_min=K_MIN):
    """Pareto smoothed importance sampling (PSIS).
    Parameters
    ----------
    lw : ndarray or list
        One dimensional log weights (normalization not required); smoothed
        and normalized in place.
    Reff : scalar, optional
        relative MCMC efficiency ``N_eff / N``
    k_min : scalar, optional
        the smoothed tail is only substituted if the fitted k is at least this
    Returns
    -------
    k : float
        Pareto tail index; inf if the tail is too short to fit, in which case
        lw is only shifted so that its maximum is 0.
    """
    lw_out = _as_logweights(lw)
    k = _psislw_inplace(lw_out, Reff=Reff, k_min=k_min)
    if lw_out is not lw:
        # lists and non-float64 arrays were smoothed on a copy
        lw[:] = lw_out if isinstance(lw, np.ndarray) else lw_out.tolist()
    return k

def _as_logweights(lw):
    lw_out = np.asarray(lw, dtype=np.float64)
    if lw_out.ndim != 1:
        raise ValueError(f'Log weights must be one dimensional, got shape {lw_out.shape}')
    if lw_out.size == 0:
        raise ValueError('Log weights are empty')
    if not np.all(np.isfinite(lw_out)):
        raise ValueError('Log weights must be finite')
    return lw_out

def _psislw_inplace(lw_out, Reff=1.0, k_min=K_MIN):
    N = lw_out.shape[0]

    # precalculate constants
    N_large = tail_size(N, Reff=Reff)
    cutoff_ind = N - N_large

    # improve numerical accuracy
    lw_out -= np.max(lw_out)

    # divide log weights into body and right tail
    ind_sort = np.argsort(lw_out, kind='stable')
    xcutoff = max(lw_out[ind_sort[cutoff_ind - 1]], CUTOFF_MIN)
    expxcutoff = np.exp(xcutoff)
    ind_large = ind_sort[cutoff_ind:]

    if N_large <= 4:
        warnings.warn(
            f'Only {N_large} tail samples, Pareto smoothing skipped', RuntimeWarning)
        return np.inf

    # fit generalized Pareto distribution to the right tail samples
    w_large = np.exp(lw_out[ind_large]) - expxcutoff
    k, sigma = gpdfitnew(w_large, sort=False)
    if not sigma > 0:
        warnings.warn(f'GPD fit failed, k={k}, sigma={sigma}', RuntimeWarning)

    if k >= k_min:
        # compute ordered statistic for the fit
        sti = np.arange(0.5, N_large) / N_large
        qq = gpinv(sti, k, sigma)
        # place the smoothed tail into the output array
        lw_out[ind_large] = np.log(qq + expxcutoff)
        # truncate smoothed values to the largest raw weight 0
        np.minimum(lw_out, 0, out=lw_out)

    # renormalize weights
    lw_out -= sumlogs(lw_out)
    return k


if __name__ == '__main__':
    rs = np.random.RandomState(seed=1)
    lw = np.concatenate((rs.normal(size=500), np.full(5, 20.0)))
    k = psislw(lw)
    print(k, np.sum(np.exp(lw)))
