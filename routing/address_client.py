#Purpose: The address-resolution "adapter/client".
#Sole responsibility: talk to the postal-code service and the forward geocoder via HTTP
#and return normalized outputs.
#Encapsulates provider-specific details:
#URL construction (ViaCEP /{code}/json/, OpenCage ?q=&key=)
#timeouts and error handling
#parsing response JSON into our internal shape
#It should not contain matching rules or ranking.


from dotenv import load_dotenv
import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple
import requests

# Read provider settings from environment
# Example in .env:
# POSTAL_CODE_BASE_URL=https://viacep.com.br/ws
# GEOCODER_BASE_URL=https://api.opencagedata.com/geocode/v1/json
# GEOCODER_API_KEY=...
load_dotenv()
POSTAL_CODE_BASE_URL = os.getenv("POSTAL_CODE_BASE_URL", "https://viacep.com.br/ws")
GEOCODER_BASE_URL = os.getenv("GEOCODER_BASE_URL", "https://api.opencagedata.com/geocode/v1/json")
GEOCODER_API_KEY = os.getenv("GEOCODER_API_KEY")
GEOCODER_LANGUAGE = os.getenv("GEOCODER_LANGUAGE", "pt")
GEOCODER_COUNTRY_CODE = os.getenv("GEOCODER_COUNTRY_CODE", "br")

logger = logging.getLogger(__name__)

# (latitude, longitude), either may be missing
MaybeLatLon = Tuple[Optional[float], Optional[float]]


class AddressResolutionError(Exception):
    """Raised when a postal code or address cannot be resolved (bad input, network, bad payload)."""
    pass


@dataclass(frozen=True)
class PostalAddress:
    """
    Normalized postal-code lookup result.
    latitude/longitude are only present when the provider embeds them.
    """
    zip_code: str
    street: str
    neighborhood: str
    city: str
    region: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def full_address(self) -> str:
        return f"{self.street}, {self.city}, {self.region}"


def _text(data: dict, key: str, default: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise AddressResolutionError(f"Address provider returned a non-text {key!r}: {value!r}")
    return value


def _to_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class AddressClient:
    """
    Address resolver backed by a ViaCEP-style postal service and an OpenCage-style geocoder.

    Sole responsibility:
    - Talk to both providers via HTTP
    - Return PostalAddress / (lat, lon)
    - Turn every failure into AddressResolutionError

    """
    def __init__(
        self,
        timeout: int = 5,
        api_key: Optional[str] = None,
        postal_base_url: Optional[str] = None,
        geocoder_base_url: Optional[str] = None,
        language: Optional[str] = None,
        country_code: Optional[str] = None,
        session=None,
    ):
        self.postal_base_url = (postal_base_url or POSTAL_CODE_BASE_URL).rstrip("/")
        self.geocoder_base_url = geocoder_base_url or GEOCODER_BASE_URL
        self.api_key = api_key or GEOCODER_API_KEY
        self.language = language or GEOCODER_LANGUAGE
        self.country_code = country_code or GEOCODER_COUNTRY_CODE
        self.timeout = timeout #seconds to wait for a provider before giving up
        self.http = session or requests

        if not self.api_key:
            raise ValueError("Geocoder API key not set. Please set GEOCODER_API_KEY in the .env file.")

        #----------------
        # Internal helper
        #----------------
    def _get_json(self, url: str, params: Optional[dict] = None) -> dict:
        try:
            response = self.http.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            logger.error("Address provider request to %s failed: %s", url, exc)
            raise AddressResolutionError(f"Request to address provider failed: {exc}") from exc
        except ValueError as exc:
            #json decoding
            logger.error("Address provider at %s returned malformed JSON: %s", url, exc)
            raise AddressResolutionError("Address provider returned malformed JSON") from exc

        #----------------
        # Public methods
        #----------------
    def resolve_postal_code(self, zip_code: str) -> PostalAddress:
        """
        calls the postal-code endpoint and returns the normalized address.

        Returns:
            PostalAddress with coordinates when the provider includes them
        """
        digits = "".join(ch for ch in str(zip_code) if ch.isdigit())
        if not digits:
            raise AddressResolutionError(f"Invalid postal code: {zip_code!r}")

        data = self._get_json(f"{self.postal_base_url}/{digits}/json/")

        #validating provider response; ViaCEP answers unknown codes with {"erro": true}
        if not isinstance(data, dict) or data.get("erro"):
            raise AddressResolutionError(f"Postal code {zip_code} not found")

        return PostalAddress(
            zip_code=_text(data, "cep", digits),
            street=_text(data, "logradouro"),
            neighborhood=_text(data, "bairro"),
            city=_text(data, "localidade"),
            region=_text(data, "uf"),
            latitude=_to_float(data.get("latitude")),
            longitude=_to_float(data.get("longitude")),
        )

    def geocode_address(self, address: str) -> MaybeLatLon:
        """
        forward-geocodes free address text.

        Returns:
            (latitude, longitude) of the first result
        """
        data = self._get_json(
            self.geocoder_base_url,
            params={
                "q": address,
                "key": self.api_key,
                "language": self.language,
                "countrycode": self.country_code,
            },
        )

        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list) or not results:
            raise AddressResolutionError(f"No coordinates found for address: {address}")

        first = results[0]
        geometry = first.get("geometry") if isinstance(first, dict) else None
        if not isinstance(geometry, dict):
            raise AddressResolutionError(f"Geocoder returned a malformed result for address: {address}")

        return (_to_float(geometry.get("lat")), _to_float(geometry.get("lng")))
