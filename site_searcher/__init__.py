"""Site-Searcher: fan website checks out to a worker pool and collect pattern matches."""

__version__ = "0.1.0"
