"""
CCDRS Reports Package (Imperative Shell)

Orchestrates report building, text output and optional HTML figures.
No analysis logic lives here; this package calls the count engine
(src/ccdrs/data/counts.py) and plotting (src/ccdrs/plotting/).

Modules:
    generators: ReportGenerator class and generate_report() convenience
                function for writing station and screenline reports.
"""

from .generators import (
    LEVELS,
    ReportGenerator,
    generate_report,
)

__all__ = [
    'LEVELS',
    'ReportGenerator',
    'generate_report',
]
