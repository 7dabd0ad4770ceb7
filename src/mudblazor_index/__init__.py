"""MudBlazor component documentation index."""

__version__ = "0.1.0"
