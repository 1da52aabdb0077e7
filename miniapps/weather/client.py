"""
Open-Meteo client for geocoding and current conditions.

Lookups never raise: any failure (HTTP error status, transport error,
empty or unusable payload) is logged and returned as None.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class GeocodeResult:
    """Coordinates for a place name."""
    latitude: float
    longitude: float
    name: str  # place name as returned by the geocoder


@dataclass
class CurrentWeather:
    """Current conditions at a coordinate."""
    temperature: float  # °C
    weather_code: int  # WMO code
    wind_speed: float  # km/h


def interpret_weather_code(code: int) -> str:
    """
    Turn a WMO weather interpretation code into text.

    See https://open-meteo.com/en/docs#weathervariables
    """
    if code == 0:
        return "Clear sky"
    if code == 1:
        return "Mainly clear"
    if code == 2:
        return "Partly cloudy"
    if code == 3:
        return "Overcast"
    if 45 <= code <= 48:
        return "Fog"
    if 51 <= code <= 55:
        return "Drizzle"
    if 56 <= code <= 57:
        return "Freezing Drizzle"
    if 61 <= code <= 65:
        return "Rain"
    if 66 <= code <= 67:
        return "Freezing Rain"
    if 71 <= code <= 75:
        return "Snow fall"
    if code == 77:
        return "Snow grains"
    if 80 <= code <= 82:
        return "Rain showers"
    if 85 <= code <= 86:
        return "Snow showers"
    if 95 <= code <= 99:
        return "Thunderstorm"  # slight/moderate/heavy
    return f"Unknown ({code})"


class WeatherClient:
    """HTTP client for the Open-Meteo geocoding and forecast APIs."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = settings or get_settings()
        self._geocoding_url = settings.geocoding_url
        self._forecast_url = settings.forecast_url
        self._client = client or httpx.AsyncClient(timeout=settings.weather_timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def geocode(self, city_name: str) -> Optional[GeocodeResult]:
        """Look up coordinates for a city name."""
        logger.info("[GeoAPI] Fetching coordinates for: %s", city_name)

        try:
            response = await self._client.get(
                self._geocoding_url,
                params={
                    "name": city_name,
                    "count": 1,
                    "language": "en",
                    "format": "json",
                },
            )
            response.raise_for_status()
            data = response.json()

            results = data.get("results") or []
            if not results:
                logger.info("[GeoAPI] No coordinates found for %s", city_name)
                return None

            first = results[0]
            result = GeocodeResult(
                latitude=first["latitude"],
                longitude=first["longitude"],
                name=first["name"],
            )
        except httpx.HTTPStatusError as e:
            logger.error(
                "[GeoAPI] Error fetching coordinates: HTTP %d", e.response.status_code
            )
            return None
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("[GeoAPI] Error fetching coordinates: %s", e)
            return None

        logger.info(
            "[GeoAPI] Found: %s (%s, %s)", result.name, result.latitude, result.longitude
        )
        return result

    async def current_weather(self, latitude: float, longitude: float) -> Optional[CurrentWeather]:
        """Fetch temperature, weather code and wind speed for a coordinate."""
        logger.info("[WeatherAPI] Fetching weather for: (%s, %s)", latitude, longitude)

        try:
            response = await self._client.get(
                self._forecast_url,
                params={
                    "latitude": latitude,
                    "longitude": longitude,
                    "current": "temperature_2m,weather_code,wind_speed_10m",
                    "temperature_unit": "celsius",
                    "wind_speed_unit": "kmh",
                },
            )
            response.raise_for_status()
            data = response.json()

            current = data.get("current")
            if not current:
                logger.info(
                    "[WeatherAPI] No current weather data found for (%s, %s)",
                    latitude, longitude
                )
                return None

            result = CurrentWeather(
                temperature=current["temperature_2m"],
                weather_code=int(current["weather_code"]),
                wind_speed=current["wind_speed_10m"],
            )
        except httpx.HTTPStatusError as e:
            logger.error(
                "[WeatherAPI] Error fetching weather: HTTP %d", e.response.status_code
            )
            return None
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("[WeatherAPI] Error fetching weather: %s", e)
            return None

        logger.info(
            "[WeatherAPI] Result: Temp %s°C, Code %d, Wind %s km/h",
            result.temperature, result.weather_code, result.wind_speed
        )
        return result
