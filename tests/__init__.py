"""
HP Trend Toolbox Test Suite

Tests for the two-sided and one-sided Hodrick-Prescott filters, the
pentadiagonal system and its banded solver, the Kalman recursion, and the
configuration, validation and parameter layers they rely on.
"""
