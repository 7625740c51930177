"""tgrelay command line interface."""
