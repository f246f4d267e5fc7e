"""Find, clean, deduplicate and check dataset links and accessions in scientific text."""

__version__ = "0.1.0"