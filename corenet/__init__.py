"""Building blocks for a simulated 5G core: NAS codecs, an NRF and a signalling observatory."""

__version__ = "0.1.0"