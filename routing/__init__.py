#Marks routing as a package.
#Re-exports the address client and the distance helpers so other modules
#import from routing without knowing internal file names.
#No business logic.

from .address_client import AddressClient, AddressResolutionError, PostalAddress
from .geodesy import haversine_m, meters_to_km, format_km

__all__ = [
           "AddressClient",
           "AddressResolutionError",
             "PostalAddress",
             "haversine_m",
             "meters_to_km",
             "format_km",
             ]
