"""Dashboard tabs, one module per tab."""
