"""Hit dispatch, deferred actions and the fixed-rate reaction loop."""
