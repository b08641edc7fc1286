"""Input snapshots handed to the engine by external collaborators."""

from vendorpay.persistence.snapshot import Snapshot, load_snapshot

__all__ = ["Snapshot", "load_snapshot"]
