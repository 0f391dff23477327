#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Legacy entry point for the HP Trend Toolbox build.

All metadata, dependencies and package discovery live in pyproject.toml;
this file only lets tools that still invoke ``python setup.py`` build the
same distribution.
"""

import setuptools

if __name__ == "__main__":
    setuptools.setup()
