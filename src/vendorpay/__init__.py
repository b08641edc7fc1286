"""vendorpay — commission and settlement engine for multi-vendor marketplaces."""

__version__ = "0.1.0"
