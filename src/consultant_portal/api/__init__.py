"""HTTP interface for the consultant portal."""
