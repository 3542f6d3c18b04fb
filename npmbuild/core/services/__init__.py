"""Services — fingerprinting, manifest parsing, strategy resolution and execution."""
