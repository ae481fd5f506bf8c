"""
Geometric multivariate analysis of register variation across varieties of
English.
"""

import logging

from .exceptions import DataIntegrityError, DimensionalityError, RegisterGMAError

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
