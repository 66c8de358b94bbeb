"""Weather lookup tool backed by the Open-Meteo forecast API."""

from typing import Any

import httpx

from chatbot.services.tools.base import BaseTool, ToolDefinition, ToolParameter

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"


class GetWeatherTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="getWeather",
            description="Get the current weather at a location.",
            parameters=[
                ToolParameter(name="latitude", type="number", description="Latitude of the location"),
                ToolParameter(name="longitude", type="number", description="Longitude of the location"),
            ],
        )

    async def execute(self, **kwargs: Any) -> Any:
        params = {
            "latitude": kwargs["latitude"],
            "longitude": kwargs["longitude"],
            "current": "temperature_2m",
            "hourly": "temperature_2m",
            "daily": "sunrise,sunset",
            "timezone": "auto",
        }
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(FORECAST_URL, params=params)
                response.raise_for_status()
        except httpx.HTTPError as e:
            return {"error": f"Failed to fetch weather: {e}"}

        return response.json()
