"""HTTP host for prime searches."""
