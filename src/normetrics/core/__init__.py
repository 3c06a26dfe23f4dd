"""Core normalization logic. No I/O beyond the source port."""
