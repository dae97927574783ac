"""
5G NR Link-Adaptation Dataset Campaign Framework

This package builds reproducible NR radio-access scenarios and drives
multi-run simulation campaigns whose trace files form a training corpus
for MCS prediction.
"""

__version__ = "1.0.0"
__author__ = "Carlos Lopes"
