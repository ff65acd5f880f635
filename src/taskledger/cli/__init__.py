"""Command-line sub-applications mounted by ``taskledger.main``."""
