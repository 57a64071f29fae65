"""
Process utilities for the surveillance pipelines.

This module contains the table loaders, summaries, time bucketing,
case series cleaning and reproduction number estimation.
"""

from .mutations import extract_position, summarize, mutations_per_genome
from .aggregate import aggregate_counts, assign_time_bucket

__all__ = ['extract_position', 'summarize', 'mutations_per_genome', 'aggregate_counts', 'assign_time_bucket']
