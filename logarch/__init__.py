"""
logarch - Log archiving and retention for time-partitioned log trees.

This package contains the archive-and-retire pipeline that compresses aged
log files into a long-term archive tree and removes the originals once the
archived copy is verified on disk.
"""

__version__ = "1.4.2"
__author__ = "Taamir Ransome"
__email__ = "taamir@example.com"
