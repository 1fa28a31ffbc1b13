"""Tokenizer, parser, name resolution, type table, generic instantiation and test discovery for the Fuse language."""

__version__ = "0.1.0"