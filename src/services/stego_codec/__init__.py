"""
Stego Codec Service - Encrypted payloads hidden in image LSBs

Hides text and a nested image in carrier images:
- 1-bit LSB embedding over the R, G and B channels (alpha untouched)
- Per-payload AES-GCM encryption with Scrypt-derived keys
- Delimited, NUL-terminated frames with typed segments
- Independent per-carrier outcomes for batches of carriers
"""

__version__ = "1.0.0"
__author__ = "Stego Vault Team"
