# Author: Christian Brodbeck <christianbrodbeck@nyu.edu>
"""Synthetic decoding results for testing and examples"""
from ._simple import get_stats, simulate_decoding
