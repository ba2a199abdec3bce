"""Initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-10-20 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

AMOUNT = sa.Numeric(14, 2)
UNIT = sa.Numeric(14, 4)


def _amount(name: str) -> sa.Column:
    return sa.Column(name, AMOUNT, nullable=True, server_default="0")


def upgrade():
    # --- Users ---
    op.create_table(
        "empresas",
        sa.Column("empresa_id", sa.Integer(), primary_key=True),
        sa.Column("nombre", sa.String(120), nullable=False),
    )
    op.create_table(
        "roles",
        sa.Column("rol_id", sa.Integer(), primary_key=True),
        sa.Column("nombre", sa.String(60), nullable=False, unique=True),
    )
    permisos = op.create_table(
        "permisos",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("nombre", sa.String(60), nullable=False, unique=True),
        sa.Column("descripcion", sa.Text(), nullable=True),
    )
    op.create_table(
        "usuarios",
        sa.Column("user_id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("nombre_usuario", sa.String(120), nullable=False),
        sa.Column("dni", sa.String(20), nullable=True),
        sa.Column("rol_id", sa.Integer(), sa.ForeignKey("roles.rol_id"), nullable=True),
        sa.Column("activo", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_usuarios_user_id", "usuarios", ["user_id"])
    op.create_index("ix_usuarios_email", "usuarios", ["email"])
    op.create_table(
        "usuario_empresa",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("usuarios.user_id", ondelete="CASCADE"), primary_key=True),
        sa.Column("empresa_id", sa.Integer(), sa.ForeignKey("empresas.empresa_id"), primary_key=True),
        sa.Column("rol_id", sa.Integer(), sa.ForeignKey("roles.rol_id"), nullable=False),
    )
    op.create_table(
        "usuario_permiso",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("usuarios.user_id", ondelete="CASCADE"), primary_key=True),
        sa.Column("empresa_id", sa.Integer(), sa.ForeignKey("empresas.empresa_id"), primary_key=True),
        sa.Column("permiso_id", sa.Integer(), sa.ForeignKey("permisos.id", ondelete="CASCADE"), primary_key=True),
    )
    op.create_table(
        "rol_permiso",
        sa.Column("rol_id", sa.Integer(), sa.ForeignKey("roles.rol_id", ondelete="CASCADE"), primary_key=True),
        sa.Column("permiso_id", sa.Integer(), sa.ForeignKey("permisos.id", ondelete="CASCADE"), primary_key=True),
    )
    op.bulk_insert(permisos, [
        {"nombre": "sincronizacion", "descripcion": "Ejecutar sincronizaciones con el sistema de gestión"},
        {"nombre": "reportes", "descripcion": "Consultar y exportar reportes"},
        {"nombre": "usuarios", "descripcion": "Administrar usuarios y permisos"},
    ])

    # --- Catalog ---
    op.create_table(
        "dim_producto",
        sa.Column("producto_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("nombre", sa.String(255), nullable=False),
        sa.Column("origen", sa.String(20), nullable=True, server_default="Playa"),
        sa.Column("categoria", sa.String(30), nullable=True, server_default="OTROS"),
    )
    op.create_index("ix_dim_producto_categoria", "dim_producto", ["categoria"])
    op.create_table(
        "articulos_combustibles",
        sa.Column("id_articulo", sa.String(32), primary_key=True),
        sa.Column("descripcion", sa.String(255), nullable=True),
        sa.Column("es_combustible", sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column("es_lubricante", sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column("color", sa.String(32), nullable=True),
    )

    # --- Ingestion log ---
    op.create_table(
        "logs_ingesta",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("fecha", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("registros_insertados", sa.Integer(), nullable=True, server_default="0"),
        sa.Column("estado", sa.String(50), nullable=False),
        sa.Column("mensaje_error", sa.Text(), nullable=True),
    )
    op.create_index("ix_logs_ingesta_id", "logs_ingesta", ["id"])
    op.create_index("ix_logs_ingesta_fecha", "logs_ingesta", ["fecha"])
    op.create_index("ix_logs_ingesta_estado", "logs_ingesta", ["estado"])

    # --- Closures ---
    op.create_table(
        "cierres_turno",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("fecha", sa.DateTime(), nullable=False),
        sa.Column("id_estacion", sa.Integer(), nullable=False),
        sa.Column("nombre_estacion", sa.String(120), nullable=True),
        sa.Column("caja_id", sa.Integer(), nullable=False),
        sa.Column("nombre_caja", sa.String(120), nullable=True),
        sa.Column("id_cierre_turno", sa.Integer(), nullable=False),
        sa.Column("numero_turno", sa.Integer(), nullable=True),
        sa.Column("id_cierre_caja_tesoreria", sa.Integer(), nullable=True),
        _amount("importe_ventas_totales_contado"),
        sa.Column("total_litros_despachados", sa.Numeric(14, 3), nullable=True, server_default="0"),
        _amount("total_efectivo_recaudado"),
        sa.UniqueConstraint("id_estacion", "caja_id", "id_cierre_turno", name="uq_cierre_turno"),
    )
    op.create_index("idx_cierres_turno_fecha", "cierres_turno", ["fecha"])
    op.create_table(
        "datos_metricas",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("fecha", sa.DateTime(), nullable=False),
        sa.Column("empresa_id", sa.Integer(), nullable=False),
        sa.Column("depto_id", sa.Integer(), nullable=False),
        sa.Column("producto_id", sa.Integer(), nullable=False),
        sa.Column("estacion_id", sa.Integer(), nullable=False),
        sa.Column("nombre_estacion", sa.String(120), nullable=True),
        sa.Column("caja_id", sa.Integer(), nullable=False),
        sa.Column("nombre_caja", sa.String(120), nullable=True),
        sa.Column("id_cierre_turno", sa.Integer(), nullable=False),
        sa.Column("cantidad", sa.Numeric(14, 3), nullable=True, server_default="0"),
        _amount("importe"),
        sa.UniqueConstraint("estacion_id", "caja_id", "id_cierre_turno", name="uq_dato_metrica_cierre"),
    )
    op.create_index("idx_datos_metricas_fecha", "datos_metricas", ["fecha"])
    op.create_index("idx_datos_metricas_producto", "datos_metricas", ["producto_id"])

    # --- Invoices ---
    op.create_table(
        "facturas_venta",
        sa.Column("id_factura", sa.Integer(), primary_key=True),
        sa.Column("numero", sa.Integer(), nullable=False),
        sa.Column("tipo_comprobante", sa.String(10), nullable=False),
        sa.Column("punto_venta", sa.Integer(), nullable=False),
        sa.Column("fecha", sa.DateTime(), nullable=False),
        sa.Column("codigo", sa.String(50), nullable=True),
        sa.Column("razon_social", sa.String(255), nullable=True),
        sa.Column("numero_documento", sa.String(30), nullable=True),
        sa.Column("domicilio", sa.String(255), nullable=True),
        sa.Column("localidad", sa.String(120), nullable=True),
        sa.Column("id_localidad", sa.String(20), nullable=True),
        sa.Column("codigo_postal", sa.Integer(), nullable=True),
        sa.Column("patente", sa.String(20), nullable=True),
        sa.Column("moneda", sa.String(5), nullable=True, server_default="PES"),
        sa.Column("tipo_pago", sa.String(30), nullable=True),
        _amount("neto_gravado"),
        _amount("neto_no_gravado"),
        _amount("iva"),
        _amount("impuesto_interno"),
        _amount("tasas"),
        _amount("tasa_vial"),
        sa.Column("jurisdiccion", sa.Integer(), nullable=True),
        _amount("percepcion_iibb"),
        _amount("percepcion_iva"),
        _amount("otras_percepciones"),
        _amount("total"),
        sa.Column("id_cliente_seleccionado", sa.String(20), nullable=True),
        sa.Column("id_estacion", sa.Integer(), nullable=True),
        sa.Column("chofer", sa.String(120), nullable=True),
        sa.Column("id_movimiento_fac", sa.Integer(), nullable=True),
        sa.Column("id_movimiento_cancelado", sa.Integer(), nullable=True),
        sa.UniqueConstraint("tipo_comprobante", "punto_venta", "numero", name="uq_factura_venta_comprobante"),
    )
    op.create_index("idx_facturas_venta_fecha", "facturas_venta", ["fecha"])
    op.create_table(
        "facturas_venta_valores",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "id_factura", sa.Integer(),
            sa.ForeignKey("facturas_venta.id_factura", ondelete="CASCADE"),
            nullable=False, unique=True,
        ),
        _amount("efectivo"),
        _amount("cheques_propios"),
        _amount("cheques_terceros"),
        _amount("tarjetas"),
        _amount("transferencias"),
        _amount("debito_automatico"),
    )
    op.create_table(
        "facturas_venta_detalle",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "id_factura", sa.Integer(),
            sa.ForeignKey("facturas_venta.id_factura", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("renglon", sa.Integer(), nullable=False),
        sa.Column("cantidad", UNIT, nullable=True, server_default="0"),
        sa.Column("codigo_articulo", UNIT, nullable=True),
        sa.Column("descripcion_articulo", sa.String(255), nullable=True),
        sa.Column("id_grupo_articulo", sa.Integer(), nullable=True),
        sa.Column("descripcion_grupo", sa.String(255), nullable=True),
        sa.Column("precio", UNIT, nullable=True, server_default="0"),
        sa.Column("iva_unitario", UNIT, nullable=True, server_default="0"),
        sa.Column("impuesto_interno_unitario", UNIT, nullable=True, server_default="0"),
        sa.Column("tasas_unitario", UNIT, nullable=True, server_default="0"),
        sa.Column("tasa_vial_unitario", UNIT, nullable=True, server_default="0"),
        sa.Column("costo_unitario", UNIT, nullable=True, server_default="0"),
        sa.Column("id_articulo", sa.Integer(), nullable=True),
        sa.Column("id_caja", sa.Integer(), nullable=True),
        sa.Column("identificador_caja", sa.String(50), nullable=True),
        sa.Column("id_cierre_turno", sa.Integer(), nullable=False),
        _amount("total_neto"),
        sa.Column("neto_unitario", UNIT, nullable=True, server_default="0"),
        _amount("total_iva"),
        _amount("total_impuesto_interno"),
        _amount("total_tasas"),
        _amount("total_tasa_vial"),
        sa.Column("alicuota_iva", sa.String(10), nullable=True),
        _amount("total_renglon"),
        sa.UniqueConstraint("id_factura", "renglon", name="uq_factura_detalle_renglon"),
    )
    op.create_index("ix_facturas_venta_detalle_id_factura", "facturas_venta_detalle", ["id_factura"])
    op.create_table(
        "facturas_venta_cupones_tarjeta",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "id_factura", sa.Integer(),
            sa.ForeignKey("facturas_venta.id_factura", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("renglon", sa.Integer(), nullable=False),
        sa.Column("id_tarjeta", sa.Integer(), nullable=True),
        sa.Column("tarjeta", sa.String(60), nullable=True),
        sa.Column("caja_tarjeta", sa.String(60), nullable=True),
        sa.Column("numero_cupon", sa.Integer(), nullable=True),
        sa.Column("fecha_cupon", sa.DateTime(), nullable=True),
        _amount("total_tarjetas"),
        sa.Column("numero_lote", sa.String(30), nullable=True),
        sa.Column("numero_tarjeta", sa.String(30), nullable=True),
        sa.Column("codigo_aprobacion", sa.String(30), nullable=True),
        sa.UniqueConstraint("id_factura", "renglon", name="uq_factura_cupon_renglon"),
    )
    op.create_index(
        "ix_facturas_venta_cupones_tarjeta_id_factura", "facturas_venta_cupones_tarjeta", ["id_factura"]
    )

    # --- Receipts ---
    op.create_table(
        "recibos",
        sa.Column("id_recibo", sa.Integer(), primary_key=True),
        sa.Column("numero_recibo", sa.Integer(), nullable=False),
        sa.Column("punto_venta_recibo", sa.Integer(), nullable=False),
        sa.Column("fecha_recibo", sa.DateTime(), nullable=False),
        sa.Column("razon_social", sa.String(255), nullable=True),
        sa.Column("numero_documento", sa.String(30), nullable=True),
        _amount("total_efectivo"),
        _amount("total_sin_imputar"),
        sa.UniqueConstraint("punto_venta_recibo", "numero_recibo", name="uq_recibo_numero"),
    )
    op.create_index("idx_recibos_fecha", "recibos", ["fecha_recibo"])

    _receipt_child(
        "recibos_comprobantes_imputados", "uq_recibo_comprobante_renglon",
        sa.Column("fecha_comprobante", sa.DateTime(), nullable=True),
        sa.Column("tipo_comprobante", sa.String(10), nullable=True),
        sa.Column("punto_venta_comprobante", sa.Integer(), nullable=True),
        sa.Column("numero_comprobante", sa.Integer(), nullable=True),
        _amount("total_comprobante"),
        _amount("total_imputado"),
    )
    _receipt_child(
        "recibos_cheques_terceros", "uq_recibo_cheque_renglon",
        sa.Column("fecha_cheque", sa.DateTime(), nullable=True),
        sa.Column("banco_cheques", sa.String(120), nullable=True),
        sa.Column("caja_cheque", sa.String(60), nullable=True),
        sa.Column("numero_cheque", sa.Integer(), nullable=True),
        sa.Column("emisor", sa.String(255), nullable=True),
        sa.Column("cuit_emisor", sa.String(20), nullable=True),
        _amount("total_cheques"),
        sa.Column("fecha_entrada", sa.DateTime(), nullable=True),
        sa.Column("fecha_salida", sa.DateTime(), nullable=True),
        sa.Column("rechazado", sa.Boolean(), nullable=True, server_default=sa.false()),
    )
    _receipt_child(
        "recibos_tarjetas", "uq_recibo_tarjeta_renglon",
        sa.Column("id_tarjeta", sa.Integer(), nullable=True),
        _amount("total_tarjetas"),
    )
    _receipt_child(
        "recibos_transferencias", "uq_recibo_transferencia_renglon",
        sa.Column("banco_transferencias", sa.String(120), nullable=True),
        sa.Column("numero_cuenta", sa.String(60), nullable=True),
        _amount("total_transferencias"),
    )
    _receipt_child(
        "recibos_retenciones", "uq_recibo_retencion_renglon",
        sa.Column("tipo_retencion", sa.String(60), nullable=True),
        _amount("total_retenciones"),
    )

    # --- Positions ---
    op.create_table(
        "positions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("lat", sa.Numeric(10, 8), nullable=False),
        sa.Column("lng", sa.Numeric(11, 8), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("speed", sa.Numeric(6, 2), nullable=True, server_default="0"),
        sa.Column("direction", sa.Numeric(6, 2), nullable=True, server_default="0"),
        sa.Column("event_code", sa.String(50), nullable=True),
        sa.Column("event", sa.String(255), nullable=True),
        sa.Column("plate", sa.String(20), nullable=False),
        sa.Column("imei", sa.String(50), nullable=True),
        sa.Column("odometer", sa.Integer(), nullable=True, server_default="0"),
        sa.Column("hourmeter", sa.Integer(), nullable=True, server_default="0"),
        sa.Column("driver_key", sa.String(50), nullable=True),
        sa.Column("driver_name", sa.String(255), nullable=True),
        sa.Column("driver_document", sa.String(20), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("plate", "date", name="unique_position"),
    )
    op.create_index("idx_positions_plate_date", "positions", ["plate", "date"])
    op.create_index("ix_positions_date", "positions", ["date"])
    op.create_index("ix_positions_plate", "positions", ["plate"])

    # --- Tanks ---
    op.create_table(
        "tanques_estado_actual",
        sa.Column("id_tanque", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("producto", sa.String(100), nullable=False),
        sa.Column("capacidad", sa.Numeric(12, 2), nullable=True, server_default="0"),
        sa.Column("nivel_actual", sa.Numeric(12, 2), nullable=True, server_default="0"),
        sa.Column("temperatura", sa.Numeric(6, 2), nullable=True),
        sa.Column("fecha_actualizacion", sa.DateTime(), nullable=False),
    )


def _receipt_child(table: str, unique_name: str, *columns: sa.Column) -> None:
    op.create_table(
        table,
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "id_recibo", sa.Integer(),
            sa.ForeignKey("recibos.id_recibo", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("renglon", sa.Integer(), nullable=False),
        *columns,
        sa.UniqueConstraint("id_recibo", "renglon", name=unique_name),
    )
    op.create_index(f"ix_{table}_id_recibo", table, ["id_recibo"])


def downgrade():
    for table in (
        "tanques_estado_actual",
        "positions",
        "recibos_retenciones",
        "recibos_transferencias",
        "recibos_tarjetas",
        "recibos_cheques_terceros",
        "recibos_comprobantes_imputados",
        "recibos",
        "facturas_venta_cupones_tarjeta",
        "facturas_venta_detalle",
        "facturas_venta_valores",
        "facturas_venta",
        "datos_metricas",
        "cierres_turno",
        "logs_ingesta",
        "articulos_combustibles",
        "dim_producto",
        "rol_permiso",
        "usuario_permiso",
        "usuario_empresa",
        "usuarios",
        "permisos",
        "roles",
        "empresas",
    ):
        op.drop_table(table)
