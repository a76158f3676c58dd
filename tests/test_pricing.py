from decimal import Decimal

import pytest

from backend.services.pricing import compute_fee_split, to_money


class TestComputeFeeSplit:
    @pytest.mark.parametrize(
        "amount, fee, net",
        [
            (10000, "500.00", "9500.00"),
            ("9000", "450.00", "8550.00"),
            ("0.01", "0.00", "0.01"),
            ("0.10", "0.01", "0.09"),
            ("19.99", "1.00", "18.99"),
            ("1234.57", "61.73", "1172.84"),
        ],
    )
    def test_comision_del_5_por_ciento(self, amount, fee, net):
        split = compute_fee_split(amount)
        assert split.platform_fee == Decimal(fee)
        assert split.net_earnings == Decimal(net)

    def test_comision_mas_neto_es_el_importe(self):
        for raw in ("0.01", "0.03", "7.77", "100.05", "99999.99"):
            split = compute_fee_split(raw)
            assert split.platform_fee + split.net_earnings == split.amount

    def test_redondeo_comercial_en_la_mitad(self):
        # 0.30 * 5 % = 0.015 → 0.02
        assert compute_fee_split("0.30").platform_fee == Decimal("0.02")

    def test_float_sin_error_binario(self):
        assert compute_fee_split(0.1 + 0.2).amount == Decimal("0.30")

    @pytest.mark.parametrize("amount", [0, "0", -5, "-0.01"])
    def test_importe_no_positivo(self, amount):
        with pytest.raises(ValueError):
            compute_fee_split(amount)


class TestToMoney:
    @pytest.mark.parametrize("raw", ["abc", "", None, "NaN", "Infinity"])
    def test_valores_no_validos(self, raw):
        with pytest.raises(ValueError):
            to_money(raw)

    def test_cuantiza_a_dos_decimales(self):
        assert to_money("10") == Decimal("10.00")
        assert to_money("2.345") == Decimal("2.35")
