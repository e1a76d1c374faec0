"""
Test helper utilities for GasketCheck testing.

This module provides reusable utilities for generating synthetic pressure
traces.
"""
