"""Consultant portal: payroll cycles and client invoicing."""

__version__ = "0.1.0"
