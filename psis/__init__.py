from psis.logsum import logsum, sumlogs
from psis.gpd import gpdfitnew, gpinv
from psis.smoothing import psislw, tail_size
