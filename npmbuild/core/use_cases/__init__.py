"""Use cases — detect and build entry points."""
