"""tagvault: hierarchical document tags with schema-validated attributes."""

__version__ = "0.1.0"
