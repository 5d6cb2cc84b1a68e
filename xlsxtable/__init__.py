"""Convert Excel workbooks into CSV data tables and generated row struct headers."""

__version__ = "0.1.0"