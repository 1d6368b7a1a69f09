"""gaim-player: authenticated broadcast endpoint for GAIM poker agents."""

__version__ = "0.1.0"
