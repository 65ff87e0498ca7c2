"""QR tool room: item lending, consumable stock and worker attendance over QR scans."""

__version__ = "1.0.0"
