"""
salonslots - bookable slot calculation for multi-station grooming salons.
"""

__version__ = "0.1.0"
