"""
Visualization utilities for the surveillance report.

This module contains the plotting functions shared by the batch pipelines
and the report pages.
"""

from .mutations import lineage_bar_chart, frequency_line_chart, faceted_frequency_chart
from .reproduction import reproduction_number_chart
from .export import save_figure

__all__ = [
    'lineage_bar_chart',
    'frequency_line_chart',
    'faceted_frequency_chart',
    'reproduction_number_chart',
    'save_figure',
]
