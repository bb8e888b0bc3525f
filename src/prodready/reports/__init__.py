"""Report renderers for scan results."""
