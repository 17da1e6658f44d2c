"""XC (Xplain Code): streaming code explanations with live previews."""

__version__ = "0.2.0"
