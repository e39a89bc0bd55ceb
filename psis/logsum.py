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

from functools import reduce
import numpy as np

from psis.constants import NATS, LOG_LIMIT

def logsum(x, y):
    """Sum of two numbers represented by their logarithms.
    Returns ``log(exp(x) + exp(y))``; a term more than ``NATS`` below the other,
    or below ``LOG_LIMIT``, does not contribute.
    """
    temp = y - x
    if temp > NATS or x < LOG_LIMIT:
        return y
    if temp < -NATS or y < LOG_LIMIT:
        return x
    if temp < 0:
        return x + np.log1p(np.exp(temp))
    return y + np.log1p(np.exp(-temp))

def sumlogs(x):
    """Sum of vector where numbers are represented by their logarithms.
    Calculates ``np.log(np.sum(np.exp(x)))`` by folding ``logsum`` over the
    elements, so that it works even when elements have large magnitude.
    """
    x = np.asarray(x, dtype=np.float64)
    assert x.ndim == 1
    assert x.size > 0
    return reduce(logsum, x[1:].tolist(), float(x[0]))
