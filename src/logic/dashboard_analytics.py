from decimal import Decimal
from typing import Iterable

import pandas as pd

from backend.models import Bid, BidStatus


def calcular_kpis_contratista(bids: Iterable[Bid]) -> dict:
    """
    Calcula los KPIs del panel "Mis ofertas" a partir de las ofertas del contratista.
    Retorna un diccionario con métricas listas para visualizar.
    """
    bids = list(bids)

    # Estructura por defecto si no hay datos
    if not bids:
        return {
            "total_count": 0,
            "pendientes": 0,
            "ganadas": 0,
            "win_rate": 0.0,
            "neto_cobrado": Decimal("0"),
            "neto_pendiente_pago": Decimal("0"),
            "comision_total": Decimal("0"),
            "df_mensual": pd.Series(dtype=float),
            "df_estados": pd.Series(dtype=int),
        }

    # Importes exactos con Decimal; pandas solo para las series de los gráficos
    ganadas = [b for b in bids if b.status in (BidStatus.AWARDED, BidStatus.PAID)]
    pagadas = [b for b in bids if b.status == BidStatus.PAID]
    adjudicadas = [b for b in bids if b.status == BidStatus.AWARDED]
    resueltas = [b for b in bids if b.status != BidStatus.PENDING]

    # Tasa de éxito sobre ofertas ya resueltas (las pendientes no cuentan)
    win_rate = (len(ganadas) / len(resueltas) * 100) if resueltas else 0.0

    df = pd.DataFrame(
        {
            "estado": [b.status.value for b in bids],
            "neto": [float(b.net_earnings) for b in bids],
            "fecha": [b.created_at for b in bids],
        }
    )
    df_ganadas = df[df["estado"].isin([BidStatus.AWARDED.value, BidStatus.PAID.value])].copy()
    if not df_ganadas.empty:
        df_ganadas["mes_anio"] = pd.to_datetime(df_ganadas["fecha"], utc=True).dt.strftime("%Y-%m")
        df_mensual = df_ganadas.groupby("mes_anio")["neto"].sum().sort_index()
    else:
        df_mensual = pd.Series(dtype=float)

    df_estados = df["estado"].value_counts()

    return {
        "total_count": len(bids),
        "pendientes": len([b for b in bids if b.status == BidStatus.PENDING]),
        "ganadas": len(ganadas),
        "win_rate": win_rate,
        "neto_cobrado": sum((b.net_earnings for b in pagadas), Decimal("0")),
        "neto_pendiente_pago": sum((b.net_earnings for b in adjudicadas), Decimal("0")),
        "comision_total": sum((b.platform_fee for b in ganadas), Decimal("0")),
        "df_mensual": df_mensual,
        "df_estados": df_estados,
    }
