# app/reports/queries.py

"""
Raw SQL behind the reports.

Every query takes ``fecha_inicio`` and ``fecha_fin`` binds. Either may be
NULL, in which case that side of the range is open. The end date is
inclusive of the whole day.
"""

# Classification of a product (or invoiced article) name into a report type
PRODUCT_TYPE_CASE = """
    CASE
        WHEN {name} ILIKE '%nafta%' OR {name} ILIKE '%quantium%' OR {name} ILIKE '%diesel%' THEN 'liquidos'
        WHEN {name} ILIKE '%gnc%' THEN 'gnc'
        WHEN {name} ILIKE '%lubricante%' THEN 'lubricantes'
        WHEN {name} ILIKE '%adblue%' THEN 'adblue'
        WHEN {category} ILIKE '%shop%' OR {name} ILIKE '%spot%' OR {name} ILIKE '%bar%' THEN 'shop'
        ELSE 'otros'
    END
"""


def date_filter(column: str) -> str:
    return (
        f"(CAST(:fecha_inicio AS date) IS NULL OR {column} >= CAST(:fecha_inicio AS date)) "
        f"AND (CAST(:fecha_fin AS date) IS NULL OR {column} < CAST(:fecha_fin AS date) + 1)"
    )


SUBDIARIO = f"""
    SELECT
        m.fecha::date AS fecha,
        m.estacion_id,
        m.nombre_estacion,
        m.caja_id,
        m.nombre_caja,
        d.categoria,
        d.nombre,
        SUM(m.cantidad) AS litros,
        SUM(m.importe) AS importe,
        COALESCE(ct.total_efectivo_recaudado, 0) AS total_efectivo_recaudado,
        COALESCE(ct.importe_ventas_totales_contado, 0) AS importe_ventas_totales_contado
    FROM datos_metricas m
    JOIN dim_producto d ON d.producto_id = m.producto_id
    LEFT JOIN (
        -- one row per day and register, whatever the number of shifts
        SELECT
            fecha::date AS fecha,
            id_estacion,
            caja_id,
            SUM(total_efectivo_recaudado) AS total_efectivo_recaudado,
            SUM(importe_ventas_totales_contado) AS importe_ventas_totales_contado
        FROM cierres_turno
        GROUP BY fecha::date, id_estacion, caja_id
    ) ct
        ON ct.fecha = m.fecha::date
        AND ct.id_estacion = m.estacion_id
        AND ct.caja_id = m.caja_id
    WHERE {date_filter("m.fecha")}
    GROUP BY m.fecha::date, m.estacion_id, m.nombre_estacion, m.caja_id, m.nombre_caja,
             d.categoria, d.nombre, ct.total_efectivo_recaudado, ct.importe_ventas_totales_contado
    ORDER BY m.fecha::date, m.estacion_id, m.caja_id, d.categoria
"""

MENSUAL = f"""
    SELECT
        fecha::date AS fecha,
        id_estacion,
        nombre_estacion,
        caja_id,
        nombre_caja,
        total_efectivo_recaudado,
        importe_ventas_totales_contado
    FROM cierres_turno
    WHERE {date_filter("fecha")}
    ORDER BY fecha::date, id_estacion, caja_id
"""

PC_MENSUAL = f"""
    SELECT
        m.fecha::date AS fecha,
        m.estacion_id,
        m.nombre_estacion,
        m.caja_id,
        m.nombre_caja,
        p.nombre AS producto,
        p.categoria AS categoria,
        SUM(m.importe) AS total_importe,
        SUM(m.cantidad) AS total_cantidad
    FROM datos_metricas m
    JOIN dim_producto p ON p.producto_id = m.producto_id
    WHERE {date_filter("m.fecha")}
    GROUP BY m.fecha::date, m.estacion_id, m.nombre_estacion, m.caja_id, m.nombre_caja, p.nombre, p.categoria
    ORDER BY m.fecha::date DESC, m.estacion_id, m.caja_id
"""

PC_MENSUAL_RESUMEN = f"""
    SELECT
        {PRODUCT_TYPE_CASE.format(name="p.nombre", category="p.categoria")} AS tipo,
        COALESCE(SUM(m.cantidad), 0) AS total_cantidad,
        COALESCE(SUM(m.importe), 0) AS total_importe
    FROM datos_metricas m
    JOIN dim_producto p ON p.producto_id = m.producto_id
    WHERE {date_filter("m.fecha")}
    GROUP BY tipo
    ORDER BY tipo
"""

UNIDADES_EMPRESA = f"""
    SELECT
        m.fecha::date AS fecha,
        m.empresa_id,
        e.nombre AS empresa,
        p.categoria,
        SUM(m.cantidad) AS unidades,
        SUM(m.importe) AS importe
    FROM datos_metricas m
    JOIN dim_producto p ON p.producto_id = m.producto_id
    LEFT JOIN empresas e ON e.empresa_id = m.empresa_id
    WHERE {date_filter("m.fecha")}
    GROUP BY m.fecha::date, m.empresa_id, e.nombre, p.categoria
    ORDER BY m.fecha::date, m.empresa_id, p.categoria
"""

FACTURACION_DIARIA_CLIENTE = f"""
    SELECT
        f.fecha::date AS fecha,
        f.codigo AS codigo_cliente,
        f.razon_social,
        f.numero_documento,
        COUNT(*) AS cantidad_comprobantes,
        SUM(f.neto_gravado) AS neto_gravado,
        SUM(f.iva) AS iva,
        SUM(f.total) AS total
    FROM facturas_venta f
    WHERE {date_filter("f.fecha")}
    GROUP BY f.fecha::date, f.codigo, f.razon_social, f.numero_documento
    ORDER BY f.fecha::date, f.razon_social
"""

FACTURACION_DIARIA_TIPO = f"""
    SELECT
        fecha,
        descripcion_articulo,
        SUM(cantidad) AS cantidad,
        SUM(total_neto) AS total_neto,
        SUM(total_renglon) AS total
    FROM (
        SELECT
            f.fecha::date AS fecha,
            d.descripcion_articulo,
            d.cantidad,
            d.total_neto,
            d.total_renglon,
            {PRODUCT_TYPE_CASE.format(name="d.descripcion_articulo", category="d.descripcion_grupo")} AS tipo
        FROM facturas_venta_detalle d
        JOIN facturas_venta f ON f.id_factura = d.id_factura
        WHERE {date_filter("f.fecha")}
    ) detalle
    WHERE tipo = :tipo
    GROUP BY fecha, descripcion_articulo
    ORDER BY fecha, descripcion_articulo
"""

RECIBO_DIARIO_CLIENTE = f"""
    SELECT
        r.fecha_recibo::date AS fecha,
        r.razon_social,
        r.numero_documento,
        COUNT(*) AS cantidad_recibos,
        SUM(r.total_efectivo) AS total_efectivo,
        SUM(COALESCE(ch.total, 0)) AS total_cheques,
        SUM(COALESCE(tj.total, 0)) AS total_tarjetas,
        SUM(COALESCE(tr.total, 0)) AS total_transferencias,
        SUM(COALESCE(rt.total, 0)) AS total_retenciones,
        SUM(r.total_efectivo + COALESCE(ch.total, 0) + COALESCE(tj.total, 0)
            + COALESCE(tr.total, 0) + COALESCE(rt.total, 0)) AS total
    FROM recibos r
    LEFT JOIN (
        SELECT id_recibo, SUM(total_cheques) AS total FROM recibos_cheques_terceros GROUP BY id_recibo
    ) ch ON ch.id_recibo = r.id_recibo
    LEFT JOIN (
        SELECT id_recibo, SUM(total_tarjetas) AS total FROM recibos_tarjetas GROUP BY id_recibo
    ) tj ON tj.id_recibo = r.id_recibo
    LEFT JOIN (
        SELECT id_recibo, SUM(total_transferencias) AS total FROM recibos_transferencias GROUP BY id_recibo
    ) tr ON tr.id_recibo = r.id_recibo
    LEFT JOIN (
        SELECT id_recibo, SUM(total_retenciones) AS total FROM recibos_retenciones GROUP BY id_recibo
    ) rt ON rt.id_recibo = r.id_recibo
    WHERE {date_filter("r.fecha_recibo")}
    GROUP BY r.fecha_recibo::date, r.razon_social, r.numero_documento
    ORDER BY r.fecha_recibo::date, r.razon_social
"""
