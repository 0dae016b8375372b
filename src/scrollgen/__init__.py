"""ScrollGen wallet client.

Connects an injected wallet, keeps it on the target network and tracks a
single ERC-20 transfer from submission to confirmation.
"""

__version__ = "0.1.0"
