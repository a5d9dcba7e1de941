"""Static constants: site lists, FLUXNET column names, unit conversions.

Reference data that doesn't change between runs.

Adding a new module:
1. Create ``reference/{name}.py`` with constants/dataclasses
2. Re-export from this ``__init__.py``
"""

from fluxeval.reference.sites import DEFAULT_SITES as DEFAULT_SITES
from fluxeval.reference.units import GPP_UMOL_TO_G_PER_DAY as GPP_UMOL_TO_G_PER_DAY
from fluxeval.reference.units import MISSING_VALUE as MISSING_VALUE
