# app/catalog/registry.py

"""
In-memory station and register name maps.

The API process fills them during startup. Celery workers never run the
FastAPI lifespan, so every consumer goes through ``ensure_loaded`` which
loads the maps on first use or when a previous load came back empty.
"""

from typing import Dict, Iterator, List, Optional, Tuple

from app.caldenon import api_client
from app.catalog.utils import parse_registers, parse_stations
from app.utils.logger import get_logger

logger = get_logger(__name__)


class StationRegistry:
    """Station and register names keyed by vendor id"""

    def __init__(self):
        self.stations: Dict[int, str] = {}
        self.registers: Dict[int, str] = {}
        self.register_stations: Dict[int, Optional[int]] = {}

    @property
    def loaded(self) -> bool:
        return bool(self.stations) and bool(self.registers)

    async def load(self) -> None:
        """Fetch both maps from the vendor and replace the current ones"""
        stations = parse_stations(await api_client.fetch_stations())
        registers = parse_registers(await api_client.fetch_registers())

        self.stations = stations
        self.registers = {register["id"]: register["nombre"] for register in registers}
        self.register_stations = {register["id"]: register["id_estacion"] for register in registers}

        logger.info(
            "Station and register maps loaded",
            estaciones=len(self.stations),
            cajas=len(self.registers),
        )

    async def ensure_loaded(self) -> None:
        if not self.loaded:
            await self.load()

    def station_name(self, station_id: int) -> str:
        return self.stations.get(station_id, f"Estación {station_id}")

    def register_name(self, register_id: int) -> str:
        return self.registers.get(register_id, f"Caja {register_id}")

    def pairs(self) -> Iterator[Tuple[int, int]]:
        """
        Every (station, register) combination worth asking the vendor about.

        A register tied to a station is only paired with that station.
        """
        for station_id in sorted(self.stations):
            for register_id in sorted(self.registers):
                owner = self.register_stations.get(register_id)
                if owner is None or owner == station_id:
                    yield station_id, register_id

    def as_list(self) -> Tuple[List[dict], List[dict]]:
        stations = [{"id": key, "nombre": value} for key, value in sorted(self.stations.items())]
        registers = [
            {"id": key, "nombre": value, "id_estacion": self.register_stations.get(key)}
            for key, value in sorted(self.registers.items())
        ]
        return stations, registers


station_registry = StationRegistry()


def get_station_registry() -> StationRegistry:
    return station_registry
