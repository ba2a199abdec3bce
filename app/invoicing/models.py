# app/invoicing/models.py

"""
Sales invoices and account receipts, with their child rows.

Child rows carry ``renglon``, their 1-based position inside the parent
document, so re-importing a document never duplicates them.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base


# === Invoices ===

class FacturaVenta(Base):
    __tablename__ = "facturas_venta"

    __table_args__ = (
        UniqueConstraint("tipo_comprobante", "punto_venta", "numero", name="uq_factura_venta_comprobante"),
        Index("idx_facturas_venta_fecha", "fecha"),
    )

    id_factura: Mapped[int] = mapped_column(primary_key=True)
    numero: Mapped[int] = mapped_column(Integer, nullable=False)
    tipo_comprobante: Mapped[str] = mapped_column(String(10), nullable=False)
    punto_venta: Mapped[int] = mapped_column(Integer, nullable=False)
    fecha: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    codigo: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    razon_social: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    numero_documento: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    domicilio: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    localidad: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    id_localidad: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    codigo_postal: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    patente: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    moneda: Mapped[str] = mapped_column(String(5), default="PES")
    tipo_pago: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    neto_gravado: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    neto_no_gravado: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    iva: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    impuesto_interno: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    tasas: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    tasa_vial: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    jurisdiccion: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    percepcion_iibb: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    percepcion_iva: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    otras_percepciones: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    total: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    id_cliente_seleccionado: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    id_estacion: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    chofer: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    id_movimiento_fac: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    id_movimiento_cancelado: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class FacturaVentaValores(Base):
    """Payment method split of an invoice"""
    __tablename__ = "facturas_venta_valores"

    id: Mapped[int] = mapped_column(primary_key=True)
    id_factura: Mapped[int] = mapped_column(
        ForeignKey("facturas_venta.id_factura", ondelete="CASCADE"), unique=True, nullable=False
    )
    efectivo: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    cheques_propios: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    cheques_terceros: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    tarjetas: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    transferencias: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    debito_automatico: Mapped[float] = mapped_column(Numeric(14, 2), default=0)


class FacturaVentaDetalle(Base):
    __tablename__ = "facturas_venta_detalle"

    __table_args__ = (
        UniqueConstraint("id_factura", "renglon", name="uq_factura_detalle_renglon"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    id_factura: Mapped[int] = mapped_column(
        ForeignKey("facturas_venta.id_factura", ondelete="CASCADE"), nullable=False, index=True
    )
    renglon: Mapped[int] = mapped_column(Integer, nullable=False)
    cantidad: Mapped[float] = mapped_column(Numeric(14, 4), default=0)
    codigo_articulo: Mapped[Optional[float]] = mapped_column(Numeric(14, 4), nullable=True)
    descripcion_articulo: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    id_grupo_articulo: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    descripcion_grupo: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    precio: Mapped[float] = mapped_column(Numeric(14, 4), default=0)
    iva_unitario: Mapped[float] = mapped_column(Numeric(14, 4), default=0)
    impuesto_interno_unitario: Mapped[float] = mapped_column(Numeric(14, 4), default=0)
    tasas_unitario: Mapped[float] = mapped_column(Numeric(14, 4), default=0)
    tasa_vial_unitario: Mapped[float] = mapped_column(Numeric(14, 4), default=0)
    costo_unitario: Mapped[float] = mapped_column(Numeric(14, 4), default=0)
    id_articulo: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    id_caja: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    identificador_caja: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    id_cierre_turno: Mapped[int] = mapped_column(Integer, nullable=False)
    total_neto: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    neto_unitario: Mapped[float] = mapped_column(Numeric(14, 4), default=0)
    total_iva: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    total_impuesto_interno: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    total_tasas: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    total_tasa_vial: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    alicuota_iva: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    total_renglon: Mapped[float] = mapped_column(Numeric(14, 2), default=0)


class FacturaVentaCuponTarjeta(Base):
    __tablename__ = "facturas_venta_cupones_tarjeta"

    __table_args__ = (
        UniqueConstraint("id_factura", "renglon", name="uq_factura_cupon_renglon"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    id_factura: Mapped[int] = mapped_column(
        ForeignKey("facturas_venta.id_factura", ondelete="CASCADE"), nullable=False, index=True
    )
    renglon: Mapped[int] = mapped_column(Integer, nullable=False)
    id_tarjeta: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tarjeta: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    caja_tarjeta: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    numero_cupon: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    fecha_cupon: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    total_tarjetas: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    numero_lote: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    numero_tarjeta: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    codigo_aprobacion: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)


# === Receipts ===

class Recibo(Base):
    __tablename__ = "recibos"

    __table_args__ = (
        UniqueConstraint("punto_venta_recibo", "numero_recibo", name="uq_recibo_numero"),
        Index("idx_recibos_fecha", "fecha_recibo"),
    )

    id_recibo: Mapped[int] = mapped_column(primary_key=True)
    numero_recibo: Mapped[int] = mapped_column(Integer, nullable=False)
    punto_venta_recibo: Mapped[int] = mapped_column(Integer, nullable=False)
    fecha_recibo: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    razon_social: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    numero_documento: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    total_efectivo: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    total_sin_imputar: Mapped[float] = mapped_column(Numeric(14, 2), default=0)


class _ReceiptChild:
    """Columns shared by every receipt child table"""
    id: Mapped[int] = mapped_column(primary_key=True)
    renglon: Mapped[int] = mapped_column(Integer, nullable=False)


def _receipt_fk() -> Mapped[int]:
    return mapped_column(ForeignKey("recibos.id_recibo", ondelete="CASCADE"), nullable=False, index=True)


class ReciboComprobanteImputado(_ReceiptChild, Base):
    __tablename__ = "recibos_comprobantes_imputados"
    __table_args__ = (UniqueConstraint("id_recibo", "renglon", name="uq_recibo_comprobante_renglon"),)

    id_recibo: Mapped[int] = _receipt_fk()
    fecha_comprobante: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    tipo_comprobante: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    punto_venta_comprobante: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    numero_comprobante: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_comprobante: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    total_imputado: Mapped[float] = mapped_column(Numeric(14, 2), default=0)


class ReciboChequeTercero(_ReceiptChild, Base):
    __tablename__ = "recibos_cheques_terceros"
    __table_args__ = (UniqueConstraint("id_recibo", "renglon", name="uq_recibo_cheque_renglon"),)

    id_recibo: Mapped[int] = _receipt_fk()
    fecha_cheque: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    banco_cheques: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    caja_cheque: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    numero_cheque: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    emisor: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    cuit_emisor: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    total_cheques: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
    fecha_entrada: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    fecha_salida: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    rechazado: Mapped[bool] = mapped_column(Boolean, default=False)


class ReciboTarjeta(_ReceiptChild, Base):
    __tablename__ = "recibos_tarjetas"
    __table_args__ = (UniqueConstraint("id_recibo", "renglon", name="uq_recibo_tarjeta_renglon"),)

    id_recibo: Mapped[int] = _receipt_fk()
    id_tarjeta: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_tarjetas: Mapped[float] = mapped_column(Numeric(14, 2), default=0)


class ReciboTransferencia(_ReceiptChild, Base):
    __tablename__ = "recibos_transferencias"
    __table_args__ = (UniqueConstraint("id_recibo", "renglon", name="uq_recibo_transferencia_renglon"),)

    id_recibo: Mapped[int] = _receipt_fk()
    banco_transferencias: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    numero_cuenta: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    total_transferencias: Mapped[float] = mapped_column(Numeric(14, 2), default=0)


class ReciboRetencion(_ReceiptChild, Base):
    __tablename__ = "recibos_retenciones"
    __table_args__ = (UniqueConstraint("id_recibo", "renglon", name="uq_recibo_retencion_renglon"),)

    id_recibo: Mapped[int] = _receipt_fk()
    tipo_retencion: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    total_retenciones: Mapped[float] = mapped_column(Numeric(14, 2), default=0)
