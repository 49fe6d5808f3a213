"""Multipart web configuration documents: parse, decode, pack, track and report."""

__version__ = "0.1.0"
__all__ = ["docstate", "multipart", "notify", "pack", "param"]