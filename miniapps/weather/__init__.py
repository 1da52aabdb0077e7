"""
Weather lookups and the conversational weather service.
"""
from .client import CurrentWeather, GeocodeResult, WeatherClient, interpret_weather_code
from .service import TurnOutcome, TurnResult, WeatherService, extract_city_name

__all__ = [
    "CurrentWeather",
    "GeocodeResult",
    "WeatherClient",
    "interpret_weather_code",
    "TurnOutcome",
    "TurnResult",
    "WeatherService",
    "extract_city_name",
]
