# app/closures/services.py

"""
Shift closure synchronisation.

For every day in the requested range and every known station and register,
the closures are fetched, each closure's totals are fetched, and both
cierres_turno and datos_metricas are upserted. Vendor calls are made one at
a time with a short pause between them and each is retried with a fixed
delay. A station/register/day that still fails is rolled back, logged to
logs_ingesta and skipped.
"""

import asyncio
from datetime import date, timedelta
from typing import Any, Dict, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.caldenon import api_client
from app.caldenon.utils import safe_int
from app.caldenon.xml_parser import parse_payload
from app.catalog.registry import StationRegistry, get_station_registry
from app.closures.exceptions import ClosureValidationException
from app.closures.repository import ClosureRepository
from app.closures.schemas import ClosureListResponse, ClosureSyncResult, DateRange
from app.closures.utils import build_closure_rows, iter_days, parse_closure_detail, parse_closures
from app.core.config import settings
from app.core.db import get_async_db
from app.ingestion.repository import IngestionLogRepository
from app.ingestion.schemas import IngestionKind, error_status, success_status
from app.utils.logger import get_logger
from app.utils.retry import retry_async

logger = get_logger(__name__)


def get_closure_repository(db: AsyncSession = Depends(get_async_db)) -> ClosureRepository:
    return ClosureRepository(db)


class ClosureService:
    """Fetches shift closures from the vendor and stores them"""

    def __init__(
        self,
        repo: ClosureRepository = Depends(get_closure_repository),
        registry: StationRegistry = Depends(get_station_registry),
    ):
        self.repo = repo
        self.registry = registry
        self.logs = IngestionLogRepository(repo.db)

    # === Vendor passthrough ===

    async def list_closures(self, id_estacion: int, id_caja: int, fecha: date) -> ClosureListResponse:
        body = await api_client.fetch_shift_closures(id_estacion, id_caja, fecha.isoformat())
        closures = parse_closures(body)
        return ClosureListResponse(cantidad=len(closures), data=closures)

    async def get_closure_detail(self, id_estacion: int, id_caja: int, fecha_hora_cierre: str) -> Dict[str, Any]:
        body = await api_client.fetch_closure_detail(id_estacion, id_caja, fecha_hora_cierre)
        return parse_payload(body)

    # === Synchronisation ===

    async def _pause(self) -> None:
        if settings.sync_request_pause > 0:
            await asyncio.sleep(settings.sync_request_pause)

    async def _sync_register_day(self, id_estacion: int, caja_id: int, day: date) -> int:
        """Store every closure of one register on one day, returns how many"""
        body = await retry_async(
            api_client.fetch_shift_closures, id_estacion, caja_id, day.isoformat(),
            operation_name="GetUltimosCierresTurno",
        )
        await self._pause()

        closures = parse_closures(body)
        if not closures:
            logger.debug("No closures", fecha=day.isoformat(), estacion=id_estacion, caja=caja_id)
            return 0

        stored = 0
        for closure in closures:
            fecha_hora = closure.get("Fecha")
            if not fecha_hora or not safe_int(closure.get("IdCierreTurno")):
                logger.warning(
                    "Closure without date or id skipped",
                    id_cierre_turno=closure.get("IdCierreTurno"),
                    estacion=id_estacion,
                    caja=caja_id,
                )
                continue

            detail_body = await retry_async(
                api_client.fetch_closure_detail, id_estacion, caja_id, fecha_hora,
                operation_name="GetInformacionCierreTurno",
            )
            await self._pause()

            closure_row, metric_row = build_closure_rows(
                closure,
                parse_closure_detail(detail_body),
                id_estacion=id_estacion,
                nombre_estacion=self.registry.station_name(id_estacion),
                caja_id=caja_id,
                nombre_caja=self.registry.register_name(caja_id),
                empresa_id=settings.default_empresa_id,
            )
            await self.repo.upsert_closure(closure_row)
            await self.repo.upsert_metric(metric_row)
            stored += 1
            logger.debug(
                "Closure stored",
                id_cierre_turno=closure_row["id_cierre_turno"],
                caja=closure_row["nombre_caja"],
            )
        return stored

    async def sync_range(self, fecha_inicio: Optional[date], fecha_fin: Optional[date]) -> ClosureSyncResult:
        """
        Sync every day between fecha_inicio and fecha_fin, both included.

        Raises:
            ClosureValidationException: If a date is missing or the range is inverted
        """
        if not fecha_inicio or not fecha_fin:
            raise ClosureValidationException("Both fechaInicio and fechaFin are required")
        if fecha_inicio > fecha_fin:
            raise ClosureValidationException("fechaInicio must not be after fechaFin")

        await self.registry.ensure_loaded()
        pairs = list(self.registry.pairs())
        days = list(iter_days(fecha_inicio, fecha_fin))

        logger.info(
            "Starting closure sync",
            desde=fecha_inicio.isoformat(),
            hasta=fecha_fin.isoformat(),
            dias=len(days),
            combinaciones=len(pairs),
        )

        total = 0
        errors = 0
        for index, day in enumerate(days, start=1):
            logger.info("Processing closures", fecha=day.isoformat(), progreso=f"{index}/{len(days)}")
            for id_estacion, caja_id in pairs:
                try:
                    total += await self._sync_register_day(id_estacion, caja_id, day)
                    await self.repo.db.commit()
                except Exception as e:
                    errors += 1
                    await self.repo.db.rollback()
                    logger.error(
                        "Closure sync failed for register day",
                        fecha=day.isoformat(),
                        estacion=id_estacion,
                        caja=caja_id,
                        error_message=str(e),
                    )
                    await self.logs.add(
                        error_status(IngestionKind.CIERRES),
                        0,
                        f"{day.isoformat()} estación {id_estacion} caja {caja_id}: {e}",
                    )
                    await self.repo.db.commit()

        await self.logs.add(
            success_status(IngestionKind.CIERRES),
            total,
            f"Rango {fecha_inicio.isoformat()} a {fecha_fin.isoformat()}, errores: {errors}",
        )
        await self.repo.db.commit()

        logger.info("Closure sync finished", total_cierres=total, dias=len(days), errores=errors)
        return ClosureSyncResult(
            message="Sincronización completada",
            total_cierres=total,
            dias=len(days),
            errores=errors,
            rango=DateRange(desde=fecha_inicio, hasta=fecha_fin),
        )

    async def sync_auto(self, today: Optional[date] = None) -> ClosureSyncResult:
        """
        Continue from the day after the newest stored metric up to today.
        """
        today = today or date.today()
        last = await self.repo.get_last_metric_date()
        if last is not None:
            start = last.date() + timedelta(days=1)
        else:
            start = date.fromisoformat(settings.closures_default_start)

        if start > today:
            logger.info("Closures already up to date", ultimo=last.isoformat() if last else None)
            return ClosureSyncResult(
                message="No hay días pendientes",
                rango=DateRange(desde=start, hasta=today),
            )
        return await self.sync_range(start, today)
