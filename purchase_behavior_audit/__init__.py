"""Customer purchase behaviour analytics over a retail order log.

The package derives order identities from imperfectly keyed order lines,
classifies customers as new or returning, ranks their purchases, and
computes segmentation, purchase timing, quarterly cohort retention and
delivery time metrics.
"""

__version__ = "0.1.0"
