from decimal import Decimal

from backend.models import BidStatus
from src.logic.dashboard_analytics import calcular_kpis_contratista
from tests.test_ranking import make_bid


class TestKpisContratista:
    def test_sin_ofertas(self):
        kpis = calcular_kpis_contratista([])
        assert kpis["total_count"] == 0
        assert kpis["win_rate"] == 0.0
        assert kpis["df_mensual"].empty

    def test_metricas(self):
        bids = [
            make_bid("a", 10000, status=BidStatus.PAID),
            make_bid("b", 2000, status=BidStatus.AWARDED),
            make_bid("c", 500, status=BidStatus.REJECTED),
            make_bid("d", 700, status=BidStatus.PENDING),
        ]
        kpis = calcular_kpis_contratista(bids)

        assert kpis["total_count"] == 4
        assert kpis["pendientes"] == 1
        assert kpis["ganadas"] == 2
        assert kpis["win_rate"] == 2 / 3 * 100
        assert kpis["neto_cobrado"] == Decimal("9500.00")
        assert kpis["neto_pendiente_pago"] == Decimal("1900.00")
        assert kpis["comision_total"] == Decimal("600.00")
        assert list(kpis["df_mensual"].index) == ["2026-01"]
        assert kpis["df_mensual"].iloc[0] == 11400.0

    def test_solo_perdidas(self):
        kpis = calcular_kpis_contratista([make_bid("a", 100, status=BidStatus.REJECTED)])
        assert kpis["win_rate"] == 0.0
        assert kpis["df_mensual"].empty
