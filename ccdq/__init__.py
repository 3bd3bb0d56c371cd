"""
ccdq: data-quality and descriptive-statistics reports for critical care
clinical records.
"""

__version__ = "0.3.0"
