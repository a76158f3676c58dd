import pytest

from src.logic.alerts import ALERT_TTL_SECONDS, AlertCenter, Severity


class ManualClock:
    def __init__(self) -> None:
        self.t = 100.0

    def __call__(self) -> float:
        return self.t


@pytest.fixture
def reloj():
    return ManualClock()


class TestAlertCenter:
    def test_caduca_a_los_4_segundos(self, reloj):
        alerts = AlertCenter(clock=reloj)
        alerts.post("Oferta enviada.", Severity.SUCCESS)

        reloj.t += 3.9
        assert alerts.current().message == "Oferta enviada."
        reloj.t += 0.1
        assert alerts.current() is None
        assert ALERT_TTL_SECONDS == 4.0

    def test_una_nueva_sustituye_y_reinicia_el_plazo(self, reloj):
        alerts = AlertCenter(clock=reloj)
        alerts.post("primera", Severity.INFO)
        reloj.t += 3
        alerts.post("segunda", Severity.ERROR)
        reloj.t += 3

        current = alerts.current()
        assert current.message == "segunda"
        assert current.severity == Severity.ERROR
        assert alerts.remaining() == pytest.approx(1.0)

    def test_sin_alerta(self, reloj):
        alerts = AlertCenter(clock=reloj)
        assert alerts.current() is None
        assert alerts.remaining() == 0.0

    def test_clear(self, reloj):
        alerts = AlertCenter(clock=reloj)
        alerts.post("x", "warning")
        alerts.clear()
        assert alerts.current() is None
