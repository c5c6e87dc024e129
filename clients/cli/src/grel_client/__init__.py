"""Terminal client for the grel chat protocol."""
