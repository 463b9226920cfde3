"""Mock payout gateway: wallet, beneficiaries and simulated settlement."""

__version__ = "0.1.0"
