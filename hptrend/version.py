# hptrend/version.py
"""
HP Trend Toolbox version information.

The toolbox follows semantic versioning (MAJOR.MINOR.PATCH). This module is
the single source of the version string, read by pyproject.toml and exposed as
hptrend.__version__.
"""

# Version components
VERSION_MAJOR = 1
VERSION_MINOR = 0
VERSION_PATCH = 0

# Full version string
__version__ = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"

# Package metadata
__title__ = "HP Trend Toolbox"
__description__ = "Two-sided and one-sided Hodrick-Prescott trend filters"
__author__ = "HP Trend Toolbox Developers"
__license__ = "MIT"

# Python version requirements
__python_requires__ = ">=3.10"

# Package dependencies
__dependencies__ = {
    "numpy": ">=1.26.0",
    "scipy": ">=1.11.3",
    "pandas": ">=2.1.1",
    "numba": ">=0.58.0",
    "matplotlib": ">=3.8.0",
}
